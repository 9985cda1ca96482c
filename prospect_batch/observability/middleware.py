"""
FastAPI middleware for observability.

Correlation ID binding and per-request access logging. Poll-heavy
endpoints (health checks) are logged at DEBUG so process-next traffic
stays readable.

Dependencies: fastapi, starlette, prospect_batch.observability
System role: Request/response observability injection
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from prospect_batch.observability.correlation import (
    clear_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

QUIET_PATH_PREFIXES = ("/api/v1/health",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with status, caller and timing."""

    async def dispatch(self, request: Request, call_next):
        """
        Log the completed request, or the exception that escaped it.

        Args:
            request: FastAPI request
            call_next: Next middleware in chain

        Returns:
            Response: Response object
        """
        start = time.perf_counter()
        path = request.url.path
        level = logging.DEBUG if path.startswith(QUIET_PATH_PREFIXES) else logging.INFO
        context = {
            "method": request.method,
            "path": path,
            "user_id": request.headers.get("X-User-ID"),
        }

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"{request.method} {path} raised {type(e).__name__}",
                extra={
                    **context,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                    "error_type": type(e).__name__,
                    "error_msg": str(e),
                },
            )
            raise

        logger.log(
            level,
            f"{request.method} {path} - {response.status_code}",
            extra={
                **context,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID per request and echo it in X-Correlation-ID."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = set_correlation_id(request.headers.get("X-Correlation-ID"))
        try:
            response: Response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response
