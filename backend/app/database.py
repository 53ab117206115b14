"""
Sites API — Database Engine & Sessions
========================================

One async engine per process, built from DATABASE_URL:
    postgresql+asyncpg://...    production; pooled (DB_POOL_SIZE, DB_MAX_OVERFLOW,
                                pre-ping, hourly recycle)
    sqlite+aiosqlite:///...     tests and single-node deployments; the sizing
                                options are skipped and SQLAlchemy picks the pool

The `sites` table is created by `initialize_schema()`, which only ever runs
through the store initialization guard. Each request gets its own
AsyncSession from `get_db_session()`.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        # Echo SQL queries in DEBUG mode for development visibility
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, which the
# services rely on when building responses
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so that `initialize_schema()` can
    create every table from a single metadata object.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session: rolled back when the route raises, closed
    either way.

    SiteService commits its own writes before returning, so a failed write
    becomes a 500 rather than surfacing once the response is already sent.
    The commit here only closes out read-only transactions.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def initialize_schema() -> None:
    """
    What:  Connects to the store and creates any missing tables.
    When:  Run once per process through the initialization guard.
    Why:   The first successful connection proves the store is reachable;
           create_all is a no-op for tables that already exist.
    """
    # Models register themselves on Base.metadata when imported
    from app.models import site  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
