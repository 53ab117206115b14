"""
Sites API — Request ID Middleware
===================================

What:  Assigns a short correlation ID to each request and echoes it back
       in the X-Request-ID response header.
Why:   Every log line and error body from one request shares the ID, so a
       client-reported failure can be matched to server logs.
How:   A client-supplied X-Request-ID is reused when it is a plain token
       (letters, digits, `.`, `_`, `-`, at most 64 chars); anything else is
       replaced with a fresh 8-char hex ID so it cannot forge or break log
       lines. Stored in a ContextVar and on request.state.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_CLIENT_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")


def resolve_request_id(supplied: Optional[str]) -> str:
    if supplied and _CLIENT_ID.fullmatch(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get("X-Request-ID"))
        # Left set after the call: the catch-all 500 handler runs outside
        # this middleware and still reads it
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
