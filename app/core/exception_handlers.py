"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(guard rejections, domain and unexpected) and return consistent responses.

Design:
- RateLimitExceededError → 429, plain text, rate limit headers
- InvalidOriginError → 417, plain text
- Other AppError subclasses → JSON with appropriate HTTP status (400, 500)
- Unexpected Exception → generic 500 (safety net)
- JSON responses include request_id for distributed tracing
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse

from app.core.errors import (
    AppError,
    ConfigurationAppError,
    InvalidOriginError,
    RateLimitExceededError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceededError) -> PlainTextResponse:
    """Render a rate limit rejection as ``429 Too Many Requests`` with a plain-text body."""
    return PlainTextResponse(exc.message, status_code=429, headers=exc.headers)


async def invalid_origin_handler(request: Request, exc: InvalidOriginError) -> PlainTextResponse:
    """Render an origin rejection as ``417 Expectation Failed`` with a plain-text body."""
    return PlainTextResponse(exc.message, status_code=417)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - ConfigurationAppError → 500 Internal Server Error (operator fault)
    - any other AppError → 400 Bad Request. Guard rejections have their own
      handlers, so this is the fallback for AppError subclasses without one.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = 400
    if isinstance(exc, ConfigurationAppError):
        status_code = 500

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        }
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
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    No stack traces reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Guard rejections get their own handlers; Starlette picks the most specific
    class in the exception's MRO, so they win over the AppError handler.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(RateLimitExceededError)(rate_limit_exceeded_handler)
    app.exception_handler(InvalidOriginError)(invalid_origin_handler)
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
