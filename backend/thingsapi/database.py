"""
Things API: Database Session Management
=========================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Each app builds its engine in `create_app()`; sessions are per-request.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings and apply to
    server databases only. SQLite (used by the test suite and local runs)
    gets SQLAlchemy's default pool for its driver.
"""

from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from thingsapi.config import Settings


def build_engine(config: Settings) -> AsyncEngine:
    """Create an async engine for `config.database_url`."""
    options: Dict[str, Any] = {"echo": config.log_level == "DEBUG"}
    if not config.is_sqlite:
        options.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(config.database_url, **options)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: attributes stay readable after the commit
    # that get_db_session issues once the handler returns
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# ── Engine & Session Factory ──────────────────────────────────────────────
def attach_database(state: Any, config: Settings) -> None:
    """
    Build the engine and session factory for `config` and store them on
    `app.state`. Each app talks only to the database its settings name.
    """
    state.engine = build_engine(config)
    state.session_factory = build_session_factory(state.engine)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object, read by alembic and by `create_schema()`.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the app's session factory
        2. Yields it to the route handler (the handler performs queries)
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/things")
        async def index(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_schema(bind: AsyncEngine) -> None:
    """Create any missing tables. Alembic remains the source of truth in production."""
    # Model modules must be imported so their tables register on Base.metadata
    from thingsapi import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(bind: AsyncEngine) -> None:
    """Gracefully closes all connections in the pool on shutdown."""
    await bind.dispose()
