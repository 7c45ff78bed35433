import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from kinnected.config import Settings, settings
from kinnected.core.rate_limit import build_rate_limiters
from kinnected.database import Base, build_engine, build_session_factory
from kinnected.errors import register_exception_handlers
from kinnected.services.chatbot import ChatbotGateway
from kinnected.utils.logging import setup_logging

# Import models so SQLAlchemy registers tables
from kinnected.models import relation, user  # noqa: F401

# Routers
from kinnected.routers import (
    ai_router,
    auth_router,
    connection_router,
    user_router,
)

logger = logging.getLogger("kinnected")


def create_app(app_settings: Settings = settings) -> FastAPI:
    setup_logging(app_settings.LOG_LEVEL)

    # -----------------------
    # LIFESPAN (engine, gateway, limiters)
    # -----------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(app_settings.DATABASE_URL)
        Base.metadata.create_all(bind=engine)
        logger.info("Connected to %s database", engine.dialect.name)

        app.state.engine = engine
        app.state.session_factory = build_session_factory(engine)
        app.state.chatbot = ChatbotGateway.from_settings(app_settings)
        app.state.rate_limiters = build_rate_limiters(app_settings)

        yield

        engine.dispose()
        logger.info("Database engine disposed")

    # -----------------------
    # CREATE APP
    # -----------------------
    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        description="Backend API for the Kinnected family tree application.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # -----------------------
    # REQUEST LOGGING (never bodies)
    # -----------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    register_exception_handlers(app)

    # -----------------------
    # ROUTES
    # -----------------------
    app.include_router(auth_router.router)
    app.include_router(user_router.router)
    app.include_router(connection_router.router)
    app.include_router(ai_router.router)

    # -----------------------
    # HEALTH CHECK
    # -----------------------
    @app.get("/health")
    def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": app_settings.ENV,
        }

    return app


app = create_app()
