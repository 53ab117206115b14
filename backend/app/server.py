"""
Sites API — Local Server Entry Point
======================================

`sites-api` console script. Binds BACKEND_HOST:PORT with uvicorn, unless the
process runs under a serverless host (VERCEL=1), in which case the
platform imports `app.main:app` itself and nothing is started here.
"""

import logging

import uvicorn

from app.config import settings

logger = logging.getLogger(__name__)


def main() -> None:
    if settings.serverless:
        logger.info("Serverless mode (VERCEL=1): local server not started")
        return

    uvicorn.run(
        "app.main:app",
        host=settings.backend_host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
