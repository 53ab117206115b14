"""
Sites API — Health Check Route
================================

GET /health answers two separate questions for probes:
    database     can the engine run a query at all (SELECT 1)
    store_ready  has the store initialization guard completed

It bypasses the store-ready middleware, so a failing initialization shows
up here as store_ready=false instead of a 500. The HTTP status is always
200; `status` is "unhealthy" only when the database is unreachable.
"""

import logging
import time

from fastapi import APIRouter, Request
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.schemas.site import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_started_at = time.monotonic()


async def _database_reachable() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Health check: database unreachable: %s", str(e))
        return False
    return True


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(request: Request) -> HealthResponse:
    reachable = await _database_reachable()
    guard = getattr(request.app.state, "store_guard", None)

    return HealthResponse(
        status="healthy" if reachable else "unhealthy",
        version=__version__,
        database="connected" if reachable else "disconnected",
        store_ready=bool(guard and guard.ready),
        uptime_seconds=round(time.monotonic() - _started_at, 2),
    )
