import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ============================================================
# ERROR TAXONOMY
# ============================================================

class AppError(Exception):
    status_code = 500
    code = "SERVER_ERROR"
    default_message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list[str]] = None,
        field: Optional[str] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors
        self.field = field
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTHENTICATION_ERROR"
    default_message = "Authentication failed"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource conflict"


class RateLimitError(AppError):
    status_code = 429
    code = "RATE_LIMITED"
    default_message = "Too many requests from this IP, please try again later"


class ServerError(AppError):
    status_code = 500
    code = "SERVER_ERROR"
    default_message = "Internal server error"


# ============================================================
# RESPONSE ENVELOPE
# ============================================================

def error_body(
    message: str,
    code: str,
    errors: Optional[list[str]] = None,
    field: Optional[str] = None,
) -> dict:
    body = {"success": False, "message": message, "code": code}
    if errors:
        body["errors"] = errors
    if field:
        body["field"] = field
    return body


_HTTP_CODES = {
    400: "VALIDATION_ERROR",
    401: "AUTHENTICATION_ERROR",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMITED",
}


def _format_validation_error(error: dict) -> str:
    message = error.get("msg", "Invalid value")
    # Messages raised from our own validators already read as sentences
    if message.startswith("Value error, "):
        return message[len("Value error, "):]

    location = [str(part) for part in error.get("loc", ()) if part != "body"]
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


# ============================================================
# HANDLERS
# ============================================================

def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.code, exc.errors, exc.field),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [_format_validation_error(error) for error in exc.errors()]
        return JSONResponse(
            status_code=400,
            content=error_body("Validation failed", ValidationError.code, errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and message == "Not Found":
            message = "API endpoint not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message, _HTTP_CODES.get(exc.status_code, "HTTP_ERROR")),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("Unique constraint violated on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=409,
            content=error_body("Resource already exists", ConflictError.code),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        settings = getattr(request.app.state, "settings", None)
        message = "Internal server error"
        if settings is not None and settings.DEBUG:
            message = str(exc) or message
        return JSONResponse(
            status_code=500,
            content=error_body(message, ServerError.code),
        )
