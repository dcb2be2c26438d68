"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses → their HTTP status (400, 403, 404, 409)
- Unexpected Exception → generic 500 (safety net, nothing leaked)
- All responses carry ``success: false`` and the request_id for tracing

Throttled requests never reach these handlers: the rate limit middleware
answers 429 directly.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from blottr.core.errors import (
    AppError,
    AuthenticationAppError,
    ConflictAppError,
    NotFoundAppError,
)
from blottr.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_code_for(exc: AppError) -> int:
    """Resolve the HTTP status for a domain error.

    An explicit ``status_code`` on the error wins; otherwise the error type
    decides, defaulting to 400.
    """
    if exc.status_code is not None:
        return exc.status_code
    if isinstance(exc, AuthenticationAppError):
        return 403
    if isinstance(exc, NotFoundAppError):
        return 404
    if isinstance(exc, ConflictAppError):
        return 409
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error as JSON.

    Response body:
        {"success": false, "error": {"code", "message", "request_id", "details"?}}
    """
    status_code = status_code_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure for debugging while returning a generic message; stack
    traces never reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            },
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
