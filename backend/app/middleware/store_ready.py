"""
Sites API — Store Readiness Middleware
========================================

What:  Makes every request wait until the store has been initialized.
Why:   In serverless mode there is no startup hook we control, and a
       startup initialization can fail while the process keeps serving.
       Each request therefore goes through the application's
       InitializationGuard before reaching a route.
How:   Awaits `app.state.store_guard.ensure()`. On failure the request is
       answered here with 500 and the initialization error's message.

Exempt paths: /health reports database status itself, and the API docs
never touch the store.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.exceptions import StoreInitializationError
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

EXEMPT_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


class StoreReadyMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        guard = request.app.state.store_guard
        try:
            await guard.ensure()
        except Exception as e:
            rid = request_id_var.get("")
            error = StoreInitializationError(message=str(e) or StoreInitializationError().message)
            logger.error("[%s] Store unavailable: %s", rid, error.message)
            return JSONResponse(
                status_code=error.status_code,
                content={
                    "error": error.error_code,
                    "message": error.message,
                    "request_id": rid,
                },
            )

        return await call_next(request)
