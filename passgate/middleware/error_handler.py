"""
Error handlers turning exceptions into the structured error envelope:

    {"error": {"category", "message", "timestamp", "path", ...details}}
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from passgate.core.exceptions import AppError, ErrorCategory, RateLimitError, StoreUnavailableError
from passgate.db.store import StoreError

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def handle_app_error(request: Request, error: AppError) -> JSONResponse:
    """Handle structured application errors"""

    log = logger.error if error.status_code >= 500 else logger.warning
    log(
        f"Application error: {error.category}",
        extra={
            "category": error.category,
            "error_message": error.message,
            "status_code": error.status_code,
            "path": request.url.path,
            "method": request.method,
        }
    )

    response_data = {
        "error": {
            "category": error.category,
            "message": error.message,
            "timestamp": _now_iso(),
            "path": request.url.path,
            **error.details
        }
    }

    headers = {}
    if error.retry_after:
        headers["Retry-After"] = str(error.retry_after)

    return JSONResponse(
        status_code=error.status_code,
        content=response_data,
        headers=headers
    )


def handle_validation_error(request: Request, error: RequestValidationError) -> JSONResponse:
    """Handle FastAPI validation errors as 400s"""

    errors = []
    for err in error.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"]
        })

    logger.warning(
        f"Validation error on {request.url.path}",
        extra={"errors": errors, "method": request.method}
    )

    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "category": ErrorCategory.VALIDATION,
                "message": "Request validation failed",
                "timestamp": _now_iso(),
                "path": request.url.path,
                "validation_errors": errors
            }
        }
    )


def handle_store_error(request: Request, error: StoreError) -> JSONResponse:
    """Backend failures are logged in full and surfaced generically"""

    logger.error(
        f"Document store error: {type(error).__name__}",
        extra={
            "error": str(error),
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )
    return handle_app_error(request, StoreUnavailableError())


def handle_rate_limit_exceeded(request: Request, error: RateLimitExceeded) -> JSONResponse:
    return handle_app_error(
        request, RateLimitError(f"Rate limit exceeded: {error.detail}")
    )


def handle_unexpected_error(request: Request, error: Exception) -> JSONResponse:
    """Handle unexpected errors"""

    logger.critical(
        f"Unexpected error: {type(error).__name__}",
        extra={
            "error": str(error),
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "category": ErrorCategory.INTERNAL,
                "message": "An unexpected error occurred. Please try again later.",
                "timestamp": _now_iso(),
                "path": request.url.path
            }
        }
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StoreError, handle_store_error)
    app.add_exception_handler(RateLimitExceeded, handle_rate_limit_exceeded)
    app.add_exception_handler(Exception, handle_unexpected_error)
