"""
Office Plant Tracker Backend — Rate Limiting Middleware
=======================================================

What:  Per-IP sliding window rate limiter.
Why:   The plant list page fires several lookups per view and the import
       endpoint rewrites the whole catalog; a runaway script on the office
       network should not be able to hammer either.
How:   Keeps the timestamps of recent requests per client IP in memory.

Algorithm:
    1. Drop timestamps older than RATE_LIMIT_WINDOW seconds
    2. If RATE_LIMIT_REQUESTS remain, reject with 429 + Retry-After
    3. Otherwise record the request and pass it on

State is per process. Running several uvicorn workers multiplies the limit.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from plant_tracker.config import settings
from plant_tracker.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Exceptions raised inside BaseHTTPMiddleware bypass FastAPI's exception
    handlers, so the 429 body is built here from RateLimitExceededError
    in the same shape the global handlers use.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    def check(self, client_ip: str, now: float) -> None:
        """
        Record a request from `client_ip` at `now`.

        Raises:
            RateLimitExceededError: The client is over its budget
        """
        window_start = now - self.window_seconds
        recent = [ts for ts in self._requests[client_ip] if ts > window_start]

        if len(recent) >= self.max_requests:
            self._requests[client_ip] = recent
            retry_after = int(recent[0] + self.window_seconds - now) + 1
            raise RateLimitExceededError(retry_after=retry_after)

        recent.append(now)
        self._requests[client_ip] = recent

        self._seen += 1
        if self._seen % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        try:
            self.check(client_ip, time.time())
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(self._requests[client_ip]),
                self.window_seconds,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Forget IPs with no request inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
