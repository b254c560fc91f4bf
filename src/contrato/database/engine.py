"""Async SQLAlchemy engine and session management for character records."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from contrato.config import get_settings

from .models.base import Base

logger = structlog.get_logger(__name__)

# Module-level singletons, reset by close_db()
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def _on_sqlite_connect(dbapi_connection: Any, _connection_record: Any) -> None:
    """Let SQLAlchemy drive transactions and turn on FK enforcement."""
    # The driver would otherwise skip BEGIN before a SAVEPOINT
    dbapi_connection.isolation_level = None

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn: Any) -> None:
    conn.exec_driver_sql("BEGIN")


def configure_sqlite(engine: AsyncEngine) -> None:
    """
    Register the SQLite connection hooks on an engine.

    History entries are written in savepoints, which need an explicit BEGIN
    around them; foreign keys are needed for the cascading deletes.
    """
    event.listen(engine.sync_engine, "connect", _on_sqlite_connect)
    event.listen(engine.sync_engine, "begin", _on_sqlite_begin)


def _sqlite_file(database_url: str) -> Path | None:
    """Path of a file-backed SQLite database, None for anything else."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


def _build_engine(database_url: str, echo: bool) -> AsyncEngine:
    """Create the engine, preparing SQLite files and pragmas as needed."""
    db_file = _sqlite_file(database_url)
    if db_file is not None:
        db_file.parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(database_url, echo=echo)

    if make_url(database_url).get_backend_name() == "sqlite":
        configure_sqlite(engine)

    logger.debug("database_engine_created", backend=engine.dialect.name)
    return engine


def get_engine() -> AsyncEngine:
    """
    Get the shared async engine, creating it from settings on first use.

    Returns:
        The async database engine
    """
    global _engine

    if _engine is None:
        settings = get_settings()
        _engine = _build_engine(settings.database_url, settings.debug)

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the shared session factory.

    Sessions keep their objects loaded after commit; rolls commit the pool
    decrement halfway through and keep using the character afterwards.

    Returns:
        The async session factory
    """
    global _async_session_factory

    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )

    return _async_session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Open a session that commits on clean exit.

    Whatever was not committed yet is rolled back if the block raises.

    Yields:
        An async database session

    Example:
        async with get_session() as session:
            character = await session.get(Character, character_id)
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create any missing tables. Called from SheetEngine.start()."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("database_initialized", tables=sorted(Base.metadata.tables))


async def close_db() -> None:
    """Dispose the engine and forget the cached session factory."""
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
        logger.info("database_closed")

    _engine = None
    _async_session_factory = None
