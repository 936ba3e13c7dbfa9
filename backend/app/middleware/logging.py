"""
RecipeShare Backend — Access Log Middleware
============================================

What:  One log line per request: method, path, status, duration, request id,
       client IP.
How:   Level follows the status class (5xx ERROR, 4xx WARNING, else INFO).
       /health and stored image downloads are skipped; they are polled and
       fetched far more often than anything else.

Privacy:
    Logged: method, path, status, duration, IP, request ID
    Never logged: bodies (passwords, reviews), Authorization header, query strings
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.middleware.request_id import request_id_var

logger = logging.getLogger("recipeshare.access")


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    QUIET_PATHS = {"/health"}

    def _is_quiet(self, path: str) -> bool:
        return path in self.QUIET_PATHS or path.startswith(settings.files_url_prefix + "/")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if self._is_quiet(path):
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("") or getattr(request.state, "request_id", "")
        ip = client_ip(request)
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": ip,
            },
        )
        return response
