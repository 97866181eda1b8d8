"""
Observability Middleware.

Tags each request with a correlation ID and writes one log line per request.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-ID"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("fleet_tracker.http")


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the fleet_tracker logger hierarchy."""
    root = logging.getLogger("fleet_tracker")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Reuses the caller's X-Correlation-ID (or mints one), echoes it back with
    X-Process-Time, and logs method, path, status and duration.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Process-Time"] = str(duration_ms)

        # Fields go into the message for plain handlers and into `extra` for structured ones
        logger.log(
            _level_for(response.status_code),
            "%s %s -> %d (%.2fms) [correlation_id=%s]",
            request.method, request.url.path, response.status_code, duration_ms, correlation_id,
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        return response
