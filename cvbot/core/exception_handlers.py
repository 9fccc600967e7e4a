"""Global exception handlers for consistent error responses.

Every failure leaves the service as ``{"success": false, "error": <message>}``,
enriched with a machine-readable ``code`` and the ``request_id``.

Design:
- AppError subclasses → 400, 404 or 500 depending on type
- FastAPI request validation errors → 400
- HTTPException → its own status code
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cvbot.core.errors import (
    AppError,
    ConfigurationAppError,
    NotFoundAppError,
    UpstreamAppError,
    ValidationAppError,
)
from cvbot.core.config import settings
from cvbot.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_code_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code.

    Args:
        exc: AppError instance (or subclass).

    Returns:
        HTTP status code.
    """
    if isinstance(exc, ValidationAppError):
        return 400
    if isinstance(exc, NotFoundAppError):
        return 404
    if isinstance(exc, UpstreamAppError):
        return 400 if exc.client_fault else 500
    if isinstance(exc, ConfigurationAppError):
        return 500
    return 400


def error_response(
    status_code: int,
    message: str,
    code: str,
    headers: dict[str, str] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Build the error envelope shared by all handlers."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "code": code,
            "request_id": request_id or get_request_id(),
        },
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error message.
    """
    status_code = status_code_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "details": exc.details or {},
            "request_path": request.url.path,
        },
    )

    return error_response(status_code, exc.message, exc.code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies/forms as 400 with the first problem."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location} {first.get('msg', '')}".strip()

    logger.warning(
        "request_validation_failed",
        extra={
            "error_count": len(errors),
            "request_path": request.url.path,
        },
    )
    return error_response(400, message, "invalid_request")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep framework HTTP errors (404 route, 405 method) in the same envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    return error_response(
        exc.status_code,
        message,
        f"http_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error.
    """
    request_id = get_request_id() or getattr(request.state, "request_id", None)
    if not isinstance(request_id, str):
        request_id = None

    logger.error(
        "unhandled_exception",
        extra={
            "request_id": request_id,
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
        exc_info=exc,
    )

    return error_response(
        500,
        "Internal server error",
        "internal_server_error",
        headers={settings.log.request_id_header: request_id} if request_id else None,
        request_id=request_id,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
