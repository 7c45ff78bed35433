"""Database engine, session handling and the declarative base."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from kinnected.errors import ConflictError

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create the engine for ``database_url``.

    SQLite connections are shared across the request thread pool, and an
    in-memory database keeps a single connection so every session sees the
    same tables.
    """
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool

    return create_engine(database_url, echo=False, future=True, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db(request: Request) -> Generator[Session, None, None]:
    """FastAPI dependency that yields a session from the app's factory."""

    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def commit_or_conflict(db: Session, message: str) -> None:
    """Commit, turning a unique-index violation into a ConflictError."""

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(message) from exc
