"""
Consolidated middleware for the FeederSync API
"""

import time
import logging
from datetime import datetime, timezone
from uuid import uuid4
from decimal import Decimal

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.exceptions import FeederSyncError

logger = logging.getLogger("feedersync.middleware")

HEALTH_PATHS = ("/health-check", "/health-check/database")


# ============================================================================
# Helper Functions
# ============================================================================


def make_serializable(obj):
    """Convert objects to JSON-serializable format"""
    if isinstance(obj, Decimal):
        return float(obj)
    elif isinstance(obj, dict):
        return {k: make_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [make_serializable(item) for item in obj]
    elif isinstance(obj, Exception):
        return str(obj)
    return obj


def error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    error = {"code": code, "message": message}
    if details:
        error["details"] = make_serializable(details)
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def _source_address(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "-"


# ============================================================================
# Request Logging Middleware
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with an id, its source address and its duration.

    Health probes arrive every few seconds and are logged at DEBUG.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        level = logging.DEBUG if request.url.path.endswith(HEALTH_PATHS) else logging.INFO
        source = _source_address(request)
        start_time = time.perf_counter()

        try:
            response: Response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - start_time
            logger.error(
                f"request_failed id={request_id} {request.method} {request.url.path} "
                f"source={source} elapsed={elapsed:.4f}s",
                exc_info=True,
            )
            raise

        elapsed = time.perf_counter() - start_time
        logger.log(
            level,
            f"request id={request_id} {request.method} {request.url.path} "
            f"source={source} status={response.status_code} elapsed={elapsed:.4f}s",
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        return response


# ============================================================================
# Error Handlers
# ============================================================================


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    logger.warning(f"Validation error on {request.url}: {exc.errors()}")

    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        exc.errors(),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions"""
    logger.warning(f"HTTP {exc.status_code} on {request.url}: {exc.detail}")

    return error_response(exc.status_code, f"HTTP_{exc.status_code}", exc.detail)


async def feedersync_exception_handler(request: Request, exc: FeederSyncError):
    """Handle every domain error by its own status and code"""
    if exc.http_status >= 500:
        logger.error(f"{type(exc).__name__} on {request.url}: {exc}", exc_info=exc)
    else:
        logger.warning(f"{type(exc).__name__} on {request.url}: {exc}")

    code = exc.code or type(exc).__name__
    # Server-side failures do not echo storage details to the client
    details = exc.details if exc.http_status < 500 else None
    return error_response(exc.http_status, code, exc.message, details)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.exception(f"Unexpected error on {request.url}: {str(exc)}")

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
    )
