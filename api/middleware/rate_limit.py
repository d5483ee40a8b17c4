"""Rate limiting middleware."""

import time
from collections import defaultdict, deque
from collections.abc import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from api.config import get_settings
from logger import format_log, get_logger

logger = get_logger("api.rate_limit")
settings = get_settings()

EXEMPT_PATHS = {"/api/v1/health", "/api/v1/automations/scheduler"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP sliding window limits held in process memory.

    Each worker keeps its own counters, so the effective limit scales with the
    number of workers.
    """

    def __init__(self, app, per_minute: int = 60, per_hour: int = 1000):
        super().__init__(app)
        self.windows = ((60, per_minute, "minute"), (3600, per_hour, "hour"))
        self.requests: dict[str, deque[float]] = defaultdict(deque)

    def _reject(self, client_ip: str, limit: int, period: str, retry_after: int) -> JSONResponse:
        logger.warning(format_log("Rate limit exceeded", ip=client_ip, limit=f"{limit}/{period}"))
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"success": False, "error": f"Rate limit exceeded: {limit} requests per {period}"},
            headers={"Retry-After": str(retry_after)},
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not settings.rate_limit_enabled or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        history = self.requests[client_ip]

        while history and history[0] <= now - 3600:
            history.popleft()

        for window, limit, period in self.windows:
            count = sum(1 for t in history if t > now - window)
            if count >= limit:
                return self._reject(client_ip, limit, period, window)

        history.append(now)
        response = await call_next(request)

        minute_count = sum(1 for t in history if t > now - 60)
        response.headers["X-RateLimit-Limit-Minute"] = str(self.windows[0][1])
        response.headers["X-RateLimit-Remaining-Minute"] = str(max(0, self.windows[0][1] - minute_count))
        return response
