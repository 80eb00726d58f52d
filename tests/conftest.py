"""
Office Plant Tracker Backend — Test Configuration (conftest.py)
===============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite) with the
       schema created from model metadata, so service tests run real SQL
       without a PostgreSQL server.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:        in-memory engine with tables created
    ├── db_session:       AsyncSession on db_engine
    ├── mock_db_session:  AsyncMock session for fault injection
    ├── make_row:         factory for ImportRow objects
    └── test_client:      HTTPX AsyncClient over the ASGI app, with
                          get_db_session bound to db_engine
"""

import os

# Settings are read at import time: point them at SQLite before any app import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["IMPORT_STRICT_MODE"] = "false"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from plant_tracker.database import Base, build_engine, get_db_session  # noqa: E402
from plant_tracker.models import location, plant  # noqa: E402,F401
from plant_tracker.schemas.imports import ImportRow  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with foreign keys on and all tables created."""
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Session on the per-test database.

    Nothing is committed unless the test commits; the session is rolled
    back and closed afterwards.
    """
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Data Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_row():
    """
    Factory for ImportRow objects.

    Usage:
        make_row(1, "P1", "Monstera", "F1", "ZoneA")
        → row 1, segments Pietro="F1", Strefa_glowna="ZoneA"
    """
    def _make(row_number, plant_id="", species="", *segments):
        columns = ("floor", "main_zone", "sub_zone", "area_type", "precise_spot")
        values = dict(zip(columns, segments))
        return ImportRow(row_number=row_number, plant_id=plant_id, species=species, **values)

    return _make


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    Each request gets its own session on the test database, committed on
    success and rolled back on error, like get_db_session() in production.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from plant_tracker.main import create_app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = override_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
