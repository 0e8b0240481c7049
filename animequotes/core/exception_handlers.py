"""Global exception handlers for consistent error responses.

Every error leaving the API, whether raised by a route or produced by the
request gate, is rendered the same way: a JSON body with a ``message`` field
and the status code carried by the error type.

Design:
- AppError subclasses -> their own ``http_status`` (401, 404, 429, 503, ...)
- Framework HTTP errors -> same status, ``message`` body
- Query validation errors -> 422
- Unexpected Exception -> generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from animequotes.core.errors import AppError, QuotaExceededError, RouteNotFoundError
from animequotes.core.logging import get_request_id

logger = logging.getLogger(__name__)


def error_response(exc: AppError) -> JSONResponse:
    """Render an AppError as ``{"message": ...}`` with its HTTP status.

    Rate limit rejections also carry their ``Retry-After``/``X-RateLimit-*``
    headers.
    """
    headers = exc.headers if isinstance(exc, QuotaExceededError) else None
    return JSONResponse(
        status_code=exc.http_status,
        content={"message": exc.message},
        headers=headers or None,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render AppErrors raised inside route handlers (e.g. quote not found, store down)."""
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": exc.http_status,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        },
    )
    return error_response(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (e.g. unknown paths outside the API prefix)."""
    if exc.status_code == 404:
        return error_response(RouteNotFoundError())
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(exc.errors())},
    )
    return JSONResponse(
        status_code=422,
        content={"message": "Invalid request parameters"},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500 for anything that is not an AppError.

    The exception type and text go to the log only; clients get a fixed message.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={"message": "An unexpected error occurred. Please try again later."},
    )


def setup_exception_handlers(app) -> None:
    """Register the handlers above on ``app``. Safe to call more than once."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
