"""
RecipeShare Backend — Request ID Middleware
============================================

What:  Gives every request a short correlation id.
How:   Reuses the client's X-Request-ID when it is sane, otherwise makes one;
       stores it in a ContextVar (for logs and error bodies) and
       request.state, and echoes it in the response header.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests share the thread
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client-supplied ids end up in logs; keep them short and printable
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Accept the client's X-Request-ID if it matches [A-Za-z0-9._-]{1,64}
        2. Otherwise generate an 8-character id
        3. Store it in request_id_var and request.state.request_id
        4. Return it as X-Request-ID
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", "")
        if not _VALID_REQUEST_ID.match(rid):
            rid = new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
