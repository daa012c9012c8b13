"""PostgreSQL store with async SQLAlchemy.

Handles:
- Database session management
- Translation of storage failures into engine error kinds
- Connection pooling

SQLite (aiosqlite) URLs are accepted too, for local runs and tests.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging

from sqlalchemy import event, text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.services.errors import ConflictError, UnavailableError
from app.settings import get_settings

logger = logging.getLogger("uvicorn.error")


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


# Engine and session factory (initialized on startup)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db(database_url: str | None = None) -> None:
    """Initialize database connection pool.

    Args:
        database_url: Override for settings.database_url (used by tests and scripts).
    """
    global _engine, _session_factory

    settings = get_settings()
    url = database_url or settings.async_database_url

    engine_kwargs: dict[str, object] = {"echo": settings.debug, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        engine_kwargs.update(
            connect_args=settings.asyncpg_connect_args,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    elif url.startswith("sqlite"):
        # Concurrent writers wait on the file lock instead of failing fast.
        engine_kwargs["connect_args"] = {"timeout": 30}

    _engine = create_async_engine(url, **engine_kwargs)
    if url.startswith("sqlite"):
        _use_immediate_transactions(_engine)
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    """Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first write, and a reader that later upgrades
    to a writer can fail with "database is locked" instead of waiting. Emitting
    BEGIN IMMEDIATE ourselves serializes transactions on the file lock.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


async def close_db() -> None:
    """Close database connection pool."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def ping_db() -> None:
    """Round-trip a trivial query to validate connectivity."""
    async with get_session() as session:
        await session.execute(text("SELECT 1"))


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session context manager.

    The session commits on clean exit and rolls back otherwise, so a caller that
    abandons an operation never leaves a partial write behind. Storage failures
    are re-raised as engine errors:
    - IntegrityError -> ConflictError
    - OperationalError / InterfaceError / TimeoutError -> UnavailableError

    Usage:
        async with get_session() as session:
            result = await session.execute(query)
    """
    if _session_factory is None:
        raise UnavailableError("Database not initialized. Call init_db() first.")

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.warning(f"Storage constraint violation: {e.orig}")
            raise ConflictError("Conflicting write rejected by storage") from e
        except (OperationalError, InterfaceError, TimeoutError) as e:
            await session.rollback()
            logger.warning(f"Storage unavailable: {e}")
            raise UnavailableError("Storage is unavailable, try again") from e
        except BaseException:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create all tables (for development/testing only)."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables() -> None:
    """Drop all tables (for testing only)."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@asynccontextmanager
async def use_session(session: AsyncSession | None = None) -> AsyncGenerator[AsyncSession, None]:
    """Reuse the caller's session, or open (and commit) a fresh one.

    Lets services run standalone or inside a wider unit of work.
    """
    if session is not None:
        yield session
        return
    async with get_session() as own_session:
        yield own_session
