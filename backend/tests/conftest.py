"""
Things API: Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Unit tests use a mocked AsyncSession; HTTP tests run the real app
       through httpx's ASGITransport against a throwaway SQLite file
       (aiosqlite). Each app builds its own engine from its Settings.

Fixtures:
    ├── mock_db_session:  Mock database session (no real DB needed)
    ├── sample_thing:     Transient Thing with id and timestamps set
    ├── route_table:      The default `things` route table
    ├── database_url:     URL of a fresh SQLite file per test
    ├── make_client:      Builds an AsyncClient for an app with given settings
    └── client:           AsyncClient for the default app (auth disabled)
"""

import os
import tempfile

# Must be set before thingsapi is imported: main builds the default app at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="thingsapi_test_"), "import.db"
)
os.environ["API_TOKENS"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from thingsapi.config import Settings
from thingsapi.database import create_schema
from thingsapi.main import create_app
from thingsapi.models.thing import Thing
from thingsapi.routing import resource_routes


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = thing
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_thing():
    created = datetime(2024, 1, 15, 12, 0, 0, 123000, tzinfo=timezone.utc)
    return Thing(
        id=7,
        name="Widget",
        description="A small widget",
        created_at=created,
        updated_at=created,
    )


@pytest.fixture
def route_table():
    return resource_routes("things")


@pytest.fixture
def database_url(tmp_path):
    """URL of a fresh, empty SQLite file for one test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'things.db'}"


@pytest_asyncio.fixture
async def make_client(database_url):
    """
    Factory fixture: `await make_client(**settings_overrides)` returns an
    AsyncClient for a fresh app whose own engine points at the test database
    (or at `database_url=...` when overridden).
    """
    apps = []
    clients = []

    async def _make(create_tables: bool = True, **overrides) -> AsyncClient:
        overrides.setdefault("database_url", database_url)
        app = create_app(Settings(**overrides))
        if create_tables:
            await create_schema(app.state.engine)
        transport = ASGITransport(app=app)
        client = AsyncClient(transport=transport, base_url="http://test")
        apps.append(app)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()
    for app in apps:
        await app.state.engine.dispose()


@pytest_asyncio.fixture
async def client(make_client):
    """
    Async HTTP client for the default app (auth disabled).

    Usage:
        async def test_index(client):
            response = await client.get("/api/things")
            assert response.status_code == 200
    """
    return await make_client()
