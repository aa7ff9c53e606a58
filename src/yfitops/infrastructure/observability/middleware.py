"""Middleware for observability: request/response logging."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from yfitops.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)


# Hey future me, this middleware logs every command request and binds the correlation ID
# for the whole request, so the queue engine's logs (append batches, reorder, playback
# lookups) can be grepped together. The ID goes back to the caller in X-Correlation-ID.
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and log details.

        Args:
            request: Incoming request
            call_next: Next middleware/handler in chain

        Returns:
            Response from application
        """
        set_correlation_id(request.headers.get("X-Correlation-ID"))

        method = request.method
        path = request.url.path
        logger.info("→ %s %s", method, path, extra={"method": method, "path": path})

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.exception(
                "Request failed: %s %s",
                method,
                path,
                extra={
                    "method": method,
                    "path": path,
                    "duration_ms": int(duration * 1000),
                    "error_type": type(e).__name__,
                },
            )
            raise

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        status_mark = "✓" if response.status_code < 400 else "✗"
        logger.info(
            "%s %s %s → %d (%dms)",
            status_mark,
            method,
            path,
            response.status_code,
            duration_ms,
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Correlation-ID"] = get_correlation_id()
        return response
