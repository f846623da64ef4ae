"""
Shared API Middleware
======================

Common middleware and exception handlers for the FastAPI application.
"""

import time
import uuid
from typing import Callable
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from fastapi.responses import JSONResponse

from hrdesk.core import (
    ApplicationException,
    DomainException,
    ExternalServiceException,
    LockTimeoutException,
    ResourceNotFoundException,
    ValidationException,
)
from hrdesk.shared.infrastructure.logging import bind_correlation_id, get_logger

logger = get_logger(__name__)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Adds correlation ID to requests for tracing.

    The ID is bound to the logging context so every log line emitted while
    handling the request carries it.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))

        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)

        try:
            response = await call_next(request)
        finally:
            bind_correlation_id(None)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """Adds the response time header."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.request_count = 0

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        self.request_count += 1

        response = await call_next(request)

        response_time = time.perf_counter() - start_time
        response.headers["X-Response-Time"] = f"{response_time:.3f}s"
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs all requests and responses.

    Provides audit trail and debugging information.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        logger.info(
            "Request started",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else None
            }
        )

        try:
            response = await call_next(request)

            response_time = time.perf_counter() - start_time
            logger.info(
                "Request completed",
                extra={
                    "method": request.method,
                    "url": str(request.url),
                    "status_code": response.status_code,
                    "response_time_ms": int(response_time * 1000)
                }
            )

            return response

        except Exception as e:
            response_time = time.perf_counter() - start_time
            logger.error(
                "Request failed",
                extra={
                    "method": request.method,
                    "url": str(request.url),
                    "error": str(e),
                    "response_time_ms": int(response_time * 1000)
                }
            )
            raise


# ========== Exception Handlers ==========

def _status_for(exc: ApplicationException) -> int:
    if isinstance(exc, ValidationException):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, ResourceNotFoundException):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, DomainException):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, (LockTimeoutException, ExternalServiceException)):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def application_exception_handler(request: Request, exc: ApplicationException) -> JSONResponse:
    """Map application exceptions to HTTP responses."""
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    status_code = _status_for(exc)

    log = logger.error if status_code == 500 else logger.warning
    log(
        "Request rejected",
        extra={
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error_message": exc.message,
            "status_code": status_code,
        }
    )

    headers = {"Retry-After": "1"} if isinstance(exc, LockTimeoutException) else None
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "error_type": type(exc).__name__,
            "details": exc.details,
            "correlation_id": correlation_id,
        },
        headers=headers,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.

    Returns consistent error responses for all exceptions.
    """
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": str(exc)
        }
    )

    # Don't expose internal details in production
    is_dev = getattr(getattr(request.app.state, "settings", None), "environment", None) == "development"

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "correlation_id": correlation_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "debug_info": str(exc) if is_dev else None
        }
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)


__all__ = [
    "CorrelationIDMiddleware",
    "TimingMiddleware",
    "LoggingMiddleware",
    "application_exception_handler",
    "global_exception_handler",
    "register_exception_handlers",
]
