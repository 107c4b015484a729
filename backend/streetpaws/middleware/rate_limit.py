"""
StreetPaws Backend — Rate Limiting Middleware
===============================================

What:  Per-IP fixed window rate limiter for the HTTP API.
Why:   Caps how many requests a single client can make (default 100 per
       15 minutes).
How:   Each IP has a (window_start, count) pair. The first request after a
       window expires opens a new window; requests beyond the limit inside a
       window are answered with 429 and a Retry-After header.
Who:   Applied to every HTTP request via Starlette middleware. WebSocket
       frames are not counted.

Excluded paths:
    /health and the API docs are never limited.

Scope:
    State is in memory, per process. With several workers each worker
    counts separately.
"""

import logging
import time
from typing import Dict, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from streetpaws.config import settings
from streetpaws.exceptions import RateLimitExceededError, error_body

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory fixed window rate limiter.

    Configuration (from settings, read on every request):
        rate_limit_requests: Max requests per window (default: 100)
        rate_limit_window:   Window length in seconds (default: 900)
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    # Expired windows are swept every this many requests
    CLEANUP_EVERY = 1000

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        # IP → (window start, requests seen in window)
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window = settings.rate_limit_window

        started, count = self._windows.get(client_ip, (now, 0))
        if now - started >= window:
            started, count = now, 0

        if count >= settings.rate_limit_requests:
            retry_after = max(1, int(started + window - now) + 1)
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                count,
                window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(exc.error_code, exc.message, {"retryAfter": retry_after}),
                headers={"Retry-After": str(retry_after)},
            )

        self._windows[client_ip] = (started, count + 1)

        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            self._cleanup_expired(now, window)

        return await call_next(request)

    def _cleanup_expired(self, now: float, window: int) -> None:
        expired = [ip for ip, (started, _) in self._windows.items() if now - started >= window]
        for ip in expired:
            del self._windows[ip]
        if expired:
            logger.debug("Cleaned up %d expired rate limit windows", len(expired))
