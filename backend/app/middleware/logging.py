"""
Sites API — Access Log Middleware
===================================

What:  One access line per API call, correlated by request ID.
How:   Times the downstream call, then logs
           GET /api/sites 200 12.4ms [a1b2c3d4] total=42
       at a level picked from the status class. List responses carry their
       match count (X-Total-Count) so slow filters are easy to spot.

Quiet paths: liveness probes and API docs are not logged.
Privacy: request bodies and query strings are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("sites_api.access")

QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        line = "%s %s %d %.1fms [%s]"
        args = [
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id_var.get(""),
        ]
        total = response.headers.get("X-Total-Count")
        if total is not None:
            line += " total=%s"
            args.append(total)

        logger.log(level_for_status(response.status_code), line, *args)
        return response
