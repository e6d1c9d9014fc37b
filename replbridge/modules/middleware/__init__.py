"""
Request Logging Middleware Module - Black Box Interface

Purpose: Log every HTTP request on arrival and on completion
Interface: RequestLoggingMiddleware, create_request_logging_middleware()
Hidden: Timing, client extraction, quiet paths

Can be attached to any FastAPI app with app.middleware("http").
"""

import logging
import time
from typing import Iterable, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

DEFAULT_QUIET_PATHS = ("/healthz", "/health")


class RequestLoggingMiddleware:
    """
    Logs method, path and client of each request, then its status and duration.

    Requests to quiet paths (health checks) are logged at DEBUG so they
    do not flood the log.
    """

    def __init__(self, quiet_paths: Optional[Iterable[str]] = None):
        self.quiet_paths = set(DEFAULT_QUIET_PATHS if quiet_paths is None else quiet_paths)

    async def __call__(self, request: Request, call_next):
        """Process the request, logging around the downstream handler."""
        path = request.url.path
        level = logging.DEBUG if path in self.quiet_paths else logging.INFO
        client_host = request.client.host if request.client else "unknown"

        logger.log(level, f"Received request: {request.method} {path} from {client_host}")

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000

        logger.log(
            level,
            f"Response sent for: {request.method} {path} "
            f"status={response.status_code} duration={duration_ms:.1f}ms",
        )
        return response


def create_request_logging_middleware(
    quiet_paths: Optional[Iterable[str]] = None,
) -> RequestLoggingMiddleware:
    """
    Factory function to create the request logging middleware.

    Args:
        quiet_paths: Paths logged at DEBUG instead of INFO

    Returns:
        Configured RequestLoggingMiddleware instance
    """
    return RequestLoggingMiddleware(quiet_paths=quiet_paths)


__all__ = ["RequestLoggingMiddleware", "create_request_logging_middleware"]
