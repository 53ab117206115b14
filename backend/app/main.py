"""
Sites API — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn app.main:app`), the `sites-api` console script, or a
       serverless host importing `app.main:app` directly.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  CORS → Req ID → Logging → GZip → Store Ready       │
    │                                                     │
    │  Routes:                                            │
    │  GET /   │  /api/sites[/{id}]  │  GET /health       │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ NotFound→404 │ DataAccess→500     │
    │  Unmatched route→404 "Resource not found"           │
    │  Anything else→500 {message}                        │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, initialize the store through the guard
              (a failure is logged; requests retry it)
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import SitesAPIError, ValidationError, NotFoundError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.middleware.store_ready import StoreReadyMiddleware
from app.routes import health, root, sites
from app.services.initialization import InitializationGuard
from app.services.site_service import site_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Sites API %s starting up...", __version__)

    try:
        await app.state.store_guard.ensure()
    except Exception as e:
        # Don't exit: the guard resets and the next request retries
        logger.error("Store initialization failed at startup: %s", str(e))

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Sites API shutting down...")
    await dispose_engine()
    app.state.store_guard.reset()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

UNEXPECTED_ERROR = "An unexpected error occurred"


def _error_body(code: str, message: str, **extra) -> dict:
    body = {"error": code, "message": message, "request_id": request_id_var.get("")}
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to status codes and a uniform JSON body.

    Handler hierarchy:
        ValidationError          → 400 (our own checks, e.g. page/perPage)
        RequestValidationError   → 400 (malformed body, rejected by pydantic)
        NotFoundError            → 404
        HTTPException 404/405    → 404 "Resource not found" (unmatched route)
        SitesAPIError (base)     → its status_code, 500 for store failures
        Exception                → 500 with the error text, or a fallback
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body(exc.error_code, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        details = [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Invalid request body: %s", request_id_var.get(""), details)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", "Invalid request body", details=details),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body(exc.error_code, exc.message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Routing raises 404 for unknown paths and 405 for unknown methods;
        # both mean "no such resource" to clients of this API
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content=_error_body("not_found", "Resource not found"),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("http_error", str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SitesAPIError)
    async def handle_app_error(request: Request, exc: SitesAPIError):
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # Runs outside the middleware stack, so the ID header is set here
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", str(exc) or UNEXPECTED_ERROR),
            headers={"X-Request-ID": rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Each app gets its own InitializationGuard on `app.state.store_guard`;
    tests swap it for a guard around a fake initializer.
    """
    app = FastAPI(
        title="Sites API",
        description="CRUD API over a collection of sites, with pagination and filtering.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.store_guard = InitializationGuard(site_service.initialize)

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost)
    app.add_middleware(StoreReadyMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(root.router)
    app.include_router(sites.router)
    app.include_router(health.router)

    return app


# uvicorn and serverless hosts import `app.main:app`
app = create_app()
