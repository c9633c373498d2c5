"""
Structured Logging
==================

JSON logs for the CAFM service.

Every record carries the service name and deployment environment. Records
emitted while a request is being served also carry its correlation ID,
which the correlation middleware publishes through ``correlation_id_var``.

Usage:
    from cafm.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Ticket created", extra={"ticket_id": "..."})
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_REDACTED_KEYS = ("password", "secret", "authorization")
_EMAIL_KEYS = ("email",)


def mask_email(value: str) -> str:
    """Keep the first letter and the domain: ``p***@example.com``."""
    local, _, domain = value.partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain}"


class CafmJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter stamping service metadata onto each record.

    Technician e-mail addresses are masked and credential-like fields
    are redacted before the record is written.
    """

    def __init__(self, *args: Any, service: str = "cafm-service", environment: str = "development", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service = service
        self.environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault("timestamp", datetime.fromtimestamp(record.created, timezone.utc).isoformat())
        log_record["level"] = record.levelname
        log_record["service"] = self.service
        log_record["environment"] = self.environment

        correlation_id = log_record.get("correlation_id") or correlation_id_var.get()
        if correlation_id:
            log_record["correlation_id"] = correlation_id

        for key, value in list(log_record.items()):
            if not isinstance(value, str):
                continue
            lowered = key.lower()
            if any(marker in lowered for marker in _REDACTED_KEYS):
                log_record[key] = "***REDACTED***"
            elif any(marker in lowered for marker in _EMAIL_KEYS):
                log_record[key] = mask_email(value)


def setup_logging(level: str = "INFO", environment: str = "development", service: str = "cafm-service") -> None:
    """
    Route all logging through a single JSON handler on stdout.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR)
        environment: Deployment environment stamped on every record
        service: Service name stamped on every record
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CafmJsonFormatter(
        "%(name)s %(levelname)s %(message)s",
        service=service,
        environment=environment,
    ))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

    # Request lines come from AccessLogMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def timed_operation(logger: logging.Logger, operation: str, slow_ms: Optional[float] = None, **context: Any):
    """
    Log how long the wrapped block took.

    Logged at DEBUG, or at WARNING when ``slow_ms`` is given and exceeded.

    Usage:
        with timed_operation(logger, "keyword_routing", slow_ms=50):
            decision = routing.route(title, description)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        level = logging.WARNING if slow_ms is not None and duration_ms > slow_ms else logging.DEBUG
        logger.log(level, f"{operation} took {duration_ms}ms", extra={
            "operation": operation,
            "duration_ms": duration_ms,
            **context,
        })
