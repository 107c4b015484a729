"""
StreetPaws Backend — Request ID Middleware
============================================

What:  Gives every HTTP request a short correlation ID.
Why:   Error responses carry it as `requestId`, and the access log prints
       it, so a failing request reported by a client can be found in the
       server logs.
How:   Reuses the client's X-Request-ID header if present, otherwise
       generates one; stores it in a ContextVar and echoes it back in the
       X-Request-ID response header.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
