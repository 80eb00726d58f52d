"""
Office Plant Tracker Backend — Database Session Management
==========================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine, provides a session dependency that commits on
       success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Transaction Model:
    One request = one session = one transaction. A CSV import therefore runs
    as a single batch: if anything escapes the import service, the whole
    batch (locations and plants) is rolled back by get_db_session().
    Per-row isolation inside a batch uses SAVEPOINTs (session.begin_nested()).

SQLite Notes:
    - Foreign keys are off by default in SQLite; every connection turns them on
      so ON DELETE CASCADE on the location tree is honoured.
    - The sqlite3 driver delays BEGIN until the first DML statement, which
      breaks SAVEPOINT nesting. We disable the driver's implicit BEGIN and
      emit our own when SQLAlchemy starts a transaction.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from plant_tracker.config import settings


def _configure_sqlite(engine: AsyncEngine) -> None:
    """Enable foreign keys and explicit transaction control on SQLite connections."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Disable the driver's own BEGIN handling; see "_on_begin" below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    Server databases get the configured connection pool. SQLite gets no pool
    sizing (its pools reject those arguments); in-memory SQLite uses a
    StaticPool so every session sees the same database.
    """
    options = {"echo": settings.log_level == "DEBUG"}

    if database_url.startswith("sqlite"):
        in_memory = database_url.rstrip("/").endswith(":memory:") or database_url.endswith("://")
        if in_memory:
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        engine = create_async_engine(database_url, **options)
        _configure_sqlite(engine)
        return engine

    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        **options,
    )


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: Prevents lazy-loading issues after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with the shared metadata
    that Alembic and create_tables() read.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session

    Example usage in a route:
        @router.get("/plants")
        async def list_plants(db: AsyncSession = Depends(get_db_session)):
            ...
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
async def create_tables(target: AsyncEngine = engine) -> None:
    """Create all tables from model metadata (local setups without Alembic)."""
    # Models must be imported so they are registered on Base.metadata
    from plant_tracker.models import location, plant  # noqa: F401

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Gracefully close all connections in the pool (application shutdown)."""
    await engine.dispose()
