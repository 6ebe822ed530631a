"""
Schools24 Backend — Request ID Middleware
===========================================

What:  Gives every request a correlation ID and returns it in X-Request-ID.
How:   Honours a client-supplied X-Request-ID, otherwise generates a short
       one; stores it in a ContextVar (for loggers and error handlers) and
       on request.state (for handlers).
When:  Outermost custom middleware, so access logs and error bodies of the
       same request share the ID.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"
MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER, "")[:MAX_CLIENT_ID_LENGTH]
        if not rid:
            rid = uuid.uuid4().hex[:8]

        # Not reset afterwards: the 500 handler runs after this middleware unwinds
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
