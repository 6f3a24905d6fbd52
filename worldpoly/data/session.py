"""
Engine and session lifecycle for the SQL game store.

init_db() is called once at startup and close_db() at shutdown; in
between, every store operation opens its own unit of work through
session_scope().
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from worldpoly.data.models import Base
from worldpoly.exceptions import DatabaseError
from worldpoly.settings import EngineSettings, get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _require_engine() -> AsyncEngine:
    if _engine is None:
        raise DatabaseError("Database is not initialized; call init_db() first")
    return _engine


async def init_db(settings: Optional[EngineSettings] = None, **engine_kwargs: Any) -> None:
    """
    Create the engine and session factory.

    Keyword arguments override the engine options derived from settings,
    e.g. a StaticPool for an in-memory SQLite database.
    """
    global _engine, _session_factory

    settings = settings or get_settings()
    options = {**settings.get_engine_kwargs(), **engine_kwargs}
    # Keep credentials out of the log
    logger.info("Connecting to %s", settings.database_url.rsplit("@", 1)[-1])

    _engine = create_async_engine(settings.database_url, **options)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False, autoflush=False)


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database connection closed")


async def create_tables() -> None:
    """Create the game tables if they do not exist yet."""
    async with _require_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Game tables ready")


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    One transaction: commits when the block exits normally and rolls
    back (re-raising) when it does not.
    """
    _require_engine()
    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
