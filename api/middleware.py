"""
Consolidated middleware and exception handlers for the FitMeal Pro API
"""

import time
import logging
import traceback
from datetime import date, datetime
from uuid import UUID, uuid4
from decimal import Decimal

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import settings
from app.exceptions import FitMealError
from domain.models.database import utcnow

logger = logging.getLogger("fitmeal.middleware")

BODY_METHODS = {"POST", "PUT", "PATCH"}


# ============================================================================
# Helper Functions
# ============================================================================


def make_serializable(obj):
    """Convert objects to JSON-serializable format"""
    if isinstance(obj, Decimal):
        return float(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, dict):
        return {k: make_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [make_serializable(item) for item in obj]
    elif isinstance(obj, Exception):
        return str(obj)
    return obj


def error_envelope(status_code: int, error: dict, headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": make_serializable(error),
            "timestamp": utcnow().isoformat(),
        },
        headers=headers,
    )


# ============================================================================
# Request Logging Middleware
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all HTTP requests and responses"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        logger.info(
            "request_started request_id=%s method=%s path=%s client=%s",
            request_id,
            request.method,
            request.url.path,
            request.client.host if request.client else None,
        )

        start_time = time.time()

        try:
            response: Response = await call_next(request)
            process_time = time.time() - start_time

            logger.info(
                "request_completed request_id=%s method=%s path=%s status=%d time=%.4fs",
                request_id,
                request.method,
                request.url.path,
                response.status_code,
                process_time,
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"

            return response

        except Exception as exc:
            process_time = time.time() - start_time
            logger.error(
                "request_failed request_id=%s method=%s path=%s error=%s time=%.4fs",
                request_id,
                request.method,
                request.url.path,
                exc,
                process_time,
                exc_info=True,
            )
            raise


# ============================================================================
# Request Size Limit Middleware
# ============================================================================


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject JSON bodies over ``max_request_size`` bytes with 413.
    Multipart uploads carry their own per-file limit and pass through.
    """

    def __init__(self, app, max_size: int = None):
        super().__init__(app)
        self.max_size = max_size or settings.max_request_size

    async def dispatch(self, request: Request, call_next):
        if request.method in BODY_METHODS and not request.headers.get(
            "content-type", ""
        ).startswith("multipart/"):
            length = request.headers.get("content-length")
            if length is not None and length.isdigit() and int(length) > self.max_size:
                logger.warning(
                    "request_too_large path=%s size=%s limit=%d",
                    request.url.path,
                    length,
                    self.max_size,
                )
                return error_envelope(
                    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    {
                        "code": "PAYLOAD_TOO_LARGE",
                        "message": "Request body is too large",
                        "details": {"max_bytes": self.max_size},
                    },
                )
        return await call_next(request)


# ============================================================================
# Error Handlers
# ============================================================================


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    logger.warning("validation_error path=%s errors=%s", request.url.path, exc.errors())

    return error_envelope(
        422,
        {
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions"""
    logger.warning(
        "http_error path=%s status=%d detail=%s", request.url.path, exc.status_code, exc.detail
    )

    return error_envelope(
        exc.status_code,
        {"code": f"HTTP_{exc.status_code}", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def fitmeal_exception_handler(request: Request, exc: FitMealError):
    """Handle service-layer errors; each type carries its own status and code"""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        "service_error path=%s status=%d code=%s message=%s",
        request.url.path,
        exc.http_status,
        exc.code,
        exc.message,
    )

    headers = None
    if exc.details and "retry_after_seconds" in exc.details:
        headers = {"Retry-After": str(exc.details["retry_after_seconds"])}
    return error_envelope(exc.http_status, exc.to_dict(), headers=headers)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors; stack traces are only exposed in development"""
    logger.exception("unexpected_error path=%s error=%s", request.url.path, exc)

    error = {
        "code": "INTERNAL_SERVER_ERROR",
        "message": "An unexpected error occurred",
    }
    if settings.is_development():
        error["details"] = {
            "exception": f"{type(exc).__name__}: {exc}",
            "stack": traceback.format_exception(type(exc), exc, exc.__traceback__),
        }
    return error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, error)
