"""
StreetPaws Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   The engine (and its connection pool) is created lazily on first use,
       reused for the life of the process, and disposed on shutdown.
       Sessions are created per request and auto-commit on success.
Who:   Used by route handlers via FastAPI's dependency injection system.

Connection Lifecycle:
    get_engine()        first call builds the pool; later calls return it
    get_db_session()    one AsyncSession per request
    dispose_engine()    closes every pooled connection (lifespan shutdown)

Pool sizing (pool_size / max_overflow / pre_ping / recycle) comes from
settings and is only passed for server databases. SQLite (used by the test
suite) manages its own pool.
"""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from streetpaws.config import settings


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers every model on one shared metadata object, which Alembic reads
    for autogeneration and the test suite uses for create_all().
    """
    pass


# ── Engine / Pool ─────────────────────────────────────────────────────────
def get_engine() -> AsyncEngine:
    """
    Return the process-wide async engine, creating it on first call.

    The engine owns the connection pool. Creating it lazily keeps module
    imports free of I/O and lets tests point DATABASE_URL elsewhere before
    anything connects.
    """
    global _engine
    if _engine is None:
        options = {"echo": settings.log_level == "DEBUG"}
        if not settings.is_sqlite:
            options.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
        _engine = create_async_engine(settings.database_url, **options)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the lazily created engine."""
    global _session_factory
    if _session_factory is None:
        # expire_on_commit=False: services read attributes after committing
        # (e.g. to build broadcast payloads) without triggering a reload
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Services that broadcast real-time events commit explicitly before
    broadcasting; the commit here is then a no-op.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
