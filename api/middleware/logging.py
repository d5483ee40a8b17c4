"""Request logging middleware."""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from logger import format_log, get_logger

logger = get_logger("api.http")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with status code and processing time."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        client = request.client.host if request.client else "unknown"

        response = await call_next(request)

        elapsed = time.perf_counter() - start_time
        log = logger.warning if response.status_code >= 500 else logger.debug
        log(
            format_log(
                f"{request.method} {request.url.path}",
                status=response.status_code,
                client=client,
                time=f"{elapsed:.3f}s",
            )
        )
        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        return response
