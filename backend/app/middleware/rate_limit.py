"""
RecipeShare Backend — Rate Limiting Middleware
===============================================

What:  Per-IP sliding-window rate limits, in two buckets.
How:   Timestamps of recent requests are kept per (bucket, IP). A request
       over the bucket's limit gets 429 with Retry-After.

Buckets:
    auth    POST /api/auth/signin, /api/auth/signup
            settings.auth_rate_limit_requests per settings.auth_rate_limit_window
            (password guessing and account spam)
    general everything else
            settings.rate_limit_requests per settings.rate_limit_window

Health checks and API docs are never limited.

Limitation:
    State is in process memory: each uvicorn worker counts separately and
    counts reset on restart.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.middleware.request_id import new_request_id

logger = logging.getLogger(__name__)

AUTH_PATHS = {"/api/auth/signin", "/api/auth/signup"}


class RateLimitMiddleware(BaseHTTPMiddleware):

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
    CLEANUP_EVERY = 1000

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[Tuple[str, str], List[float]] = defaultdict(list)
        self._seen = 0

    @staticmethod
    def bucket_for(request: Request) -> Tuple[str, int, int]:
        """(bucket name, max requests, window seconds) for a request."""
        if request.method == "POST" and request.url.path in AUTH_PATHS:
            return "auth", settings.auth_rate_limit_requests, settings.auth_rate_limit_window
        return "general", settings.rate_limit_requests, settings.rate_limit_window

    def check(self, key: Tuple[str, str], limit: int, window: int, now: float) -> Optional[int]:
        """Record the request and return None, or the Retry-After seconds if over the limit."""
        window_start = now - window
        recent = [ts for ts in self._requests[key] if ts > window_start]
        self._requests[key] = recent

        if len(recent) >= limit:
            return int(recent[0] + window - now) + 1

        recent.append(now)
        return None

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket, limit, window = self.bucket_for(request)
        now = time.time()

        retry_after = self.check((bucket, client_ip), limit, window, now)
        if retry_after is not None:
            logger.warning(
                "Rate limit exceeded for IP %s (%s bucket): %d requests in %ds window",
                client_ip, bucket, limit, window,
            )
            # Runs before RequestIDMiddleware, so mint the id here
            rid = request.headers.get("X-Request-ID") or new_request_id()
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                    "request_id": rid,
                },
                headers={"Retry-After": str(retry_after), "X-Request-ID": rid},
            )

        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive(now)

        return await call_next(request)

    def _cleanup_inactive(self, now: float) -> None:
        """Drop (bucket, IP) entries with nothing inside the longest window."""
        horizon = now - max(settings.rate_limit_window, settings.auth_rate_limit_window)
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < horizon
        ]
        for key in inactive:
            del self._requests[key]

        if inactive:
            logger.debug("Cleaned up %d inactive rate-limit entries", len(inactive))
