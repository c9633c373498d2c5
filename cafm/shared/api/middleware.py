"""
Shared API Middleware
======================

Request tracing, access logging and the mapping from application errors to
HTTP responses.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Tuple, Type

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from cafm.core import (
    ApplicationException,
    PermissionDeniedException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from cafm.shared.infrastructure.logging import correlation_id_var, get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Health checks would drown out real traffic
_QUIET_PATHS = frozenset({"/health"})

# First match wins, so subclasses come before their bases
_STATUS_BY_EXCEPTION: Tuple[Tuple[Type[ApplicationException], int], ...] = (
    (ResourceNotFoundException, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedException, status.HTTP_403_FORBIDDEN),
    (ValidationException, status.HTTP_400_BAD_REQUEST),
    (RepositoryException, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or "unknown"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a correlation ID.

    A caller-supplied X-Correlation-ID is reused, otherwise one is generated.
    The ID is echoed on the response and attached to every log record
    emitted while the request is served.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One log line per request: method, path, caller, status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        fields = {
            "method": request.method,
            "path": request.url.path,
            "user_id": request.headers.get("X-User-Id"),
        }

        try:
            response = await call_next(request)
        except Exception as e:
            fields["duration_ms"] = int((time.perf_counter() - start) * 1000)
            logger.error(f"{request.method} {request.url.path} failed", extra={**fields, "error": str(e)})
            raise

        fields["status_code"] = response.status_code
        fields["duration_ms"] = int((time.perf_counter() - start) * 1000)
        logger.info(f"{request.method} {request.url.path} {response.status_code}", extra=fields)
        return response


def status_for(exc: ApplicationException) -> int:
    """HTTP status for an application error; unmapped errors are client errors."""
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def application_exception_handler(request: Request, exc: ApplicationException) -> JSONResponse:
    status_code = status_for(exc)

    (logger.error if status_code >= 500 else logger.info)(
        "Request rejected",
        extra={
            "path": request.url.path,
            "status_code": status_code,
            "error_type": type(exc).__name__,
            "error_message": exc.message,
        }
    )

    return JSONResponse(
        status_code=status_code,
        content={**exc.to_dict(), "correlation_id": _correlation_id(request)}
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500; exception text is only exposed in development."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method, "error_type": type(exc).__name__}
    )

    settings = getattr(request.app.state, "settings", None)
    in_development = getattr(settings, "is_development", False)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "debug_info": f"{type(exc).__name__}: {exc}" if in_development else None,
            "correlation_id": _correlation_id(request),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
