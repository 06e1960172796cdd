from __future__ import annotations

"""
Request ID middleware.

- Propagates an inbound X-Request-Id or generates one (uuid4 hex).
- Exposes it as `request.state.request_id` and binds it into the structlog
  context for the duration of the request.
- Echoes it back on the response.
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..logging import bind_context, clear_context

REQUEST_ID_HEADER = "X-Request-Id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self.header = header

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id = request.headers.get(self.header) or uuid.uuid4().hex
        request.state.request_id = req_id
        bind_context(request_id=req_id, method=request.method, path=request.url.path)
        try:
            response: Response = await call_next(request)
        finally:
            clear_context("request_id", "method", "path", "caller")
        response.headers[self.header] = req_id
        return response


__all__ = ["RequestIdMiddleware", "REQUEST_ID_HEADER"]
