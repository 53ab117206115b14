"""
Sites API — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── test_app:        Fresh app whose store guard wraps a mock initializer
    ├── test_client:     HTTPX AsyncClient over test_app, DB session mocked
    ├── unraised_client: Same, but uncaught errors come back as responses
    ├── database:        Empty SQLite schema on the module engine
    ├── db_session:      Real AsyncSession on that schema
    └── e2e_client:      HTTPX AsyncClient over a fresh app with the real
                         guard and the real database
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
# Why: Prevents tests from touching a real PostgreSQL database
_tmp_dir = tempfile.mkdtemp(prefix="sites_api_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("VERCEL", None)

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.database import Base, async_session_factory, engine, get_db_session
from app.main import create_app
from app.schemas.site import SiteResponse
from app.services.initialization import InitializationGuard


@pytest.fixture
def site_factory():
    """
    Builds SiteResponse objects with plausible defaults, for mocked
    service return values.

    Usage:
        site = site_factory(name="Fort Henry", town="Kingston")
    """
    def make_site(**overrides) -> SiteResponse:
        data = {
            "id": str(uuid4()),
            "name": "Fort York",
            "description": "Historic fort and battlefield",
            "year": 1793,
            "town": "Toronto",
            "province_or_territory_code": "ON",
            "image": None,
            "latitude": 43.6389,
            "longitude": -79.4034,
            "created_at": datetime.now(timezone.utc),
        }
        data.update(overrides)
        return SiteResponse(**data)
    return make_site


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    The route tests patch the service, so the session is only passed
    through; it never has to answer a query.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def store_initializer():
    """Stand-in for SiteService.initialize; records how often it runs."""
    return AsyncMock(return_value=None)


@pytest.fixture
def test_app(mock_db_session, store_initializer):
    app = create_app()
    app.state.store_guard = InitializationGuard(store_initializer)

    async def _session_override():
        yield mock_db_session

    app.dependency_overrides[get_db_session] = _session_override
    return app


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient talking to the test app through ASGITransport.

    Usage:
        async def test_root(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    # /health opens a real connection; don't carry it into the next loop
    await engine.dispose()


@pytest_asyncio.fixture
async def unraised_client(test_app):
    """
    Like test_client, but returns the 500 response for exceptions that
    reach the outermost error handler instead of re-raising them in the
    test, which is what a real server does.
    """
    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def database():
    """
    Fresh, empty schema in the SQLite test database.

    The engine is disposed at the end so pooled aiosqlite connections never
    outlive the event loop of the test that opened them.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def e2e_client(database):
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
