"""
Structured Logging
==================

JSON-structured logging with correlation ID tracking.

Provides:
- Structured JSON logs (parseable by log aggregators)
- Correlation ID bound per HTTP request through a context variable
- Anomaly events for conditions that must be visible but never raise
- Performance timing utilities

Usage:
    from hrdesk.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Request started", extra={"request_id": "ITM-7-0001"})
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_SENSITIVE_KEYS = ("password", "token", "api_key", "secret")


def bind_correlation_id(correlation_id: Optional[str]) -> None:
    """Attach a correlation ID to every log record emitted in this context."""
    _correlation_id.set(correlation_id)


def current_correlation_id() -> Optional[str]:
    return _correlation_id.get()


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Custom JSON formatter with additional fields.

    Adds:
    - timestamp in ISO format
    - correlation_id when available
    - environment
    """

    def __init__(self, *args: Any, environment: str = "unknown", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        correlation_id = getattr(record, "correlation_id", None) or current_correlation_id()
        if correlation_id:
            log_record["correlation_id"] = correlation_id

        log_record["environment"] = self._environment

        for key, value in list(log_record.items()):
            if isinstance(value, str) and any(s in key.lower() for s in _SENSITIVE_KEYS):
                log_record[key] = "***REDACTED***"


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
) -> None:
    """
    Configure structured JSON logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name for log context
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(CustomJsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        environment=environment,
    ))
    root_logger.addHandler(handler)

    # Silence noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ of the module)
    """
    return logging.getLogger(name)


def log_anomaly(logger: logging.Logger, anomaly: str, message: str, **context: Any) -> None:
    """
    Record a condition that is wrong but must not interrupt the caller,
    e.g. a required service that produced no due date.
    """
    logger.warning(message, extra={"anomaly": anomaly, **context})


@contextmanager
def log_latency(logger: logging.Logger, operation: str, **extra_context: Any):
    """
    Context manager for measuring and logging operation latency.

    Usage:
        with log_latency(logger, "unified_log", tables=4):
            rows = await service.get_unified_log(context)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{operation} completed",
            extra={
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                **extra_context,
            },
        )
