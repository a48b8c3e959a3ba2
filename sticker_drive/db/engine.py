"""Async engines and session factories for the sticker catalogue.

The catalogue runs on SQLite (aiosqlite) for single-instance deployments
and on PostgreSQL (asyncpg) otherwise. Engines are cached per URL so the
sync orchestrator and the web app share one pool.

Usage:
    from sticker_drive.db.engine import get_async_session

    Session = get_async_session("sqlite+aiosqlite:///./stickers.db")
    async with Session() as session:
        ...
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from sticker_drive.db.models import Base

# Seconds a SQLite writer waits on a locked database. Change batches write
# from several sessions at once.
SQLITE_BUSY_TIMEOUT = 30

_engine_cache: dict[str, AsyncEngine] = {}


def _engine_options(database_url: str) -> dict[str, Any]:
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT}}
    return {"pool_pre_ping": True}


def create_engine_for(database_url: str) -> AsyncEngine:
    """Create an uncached engine with backend-appropriate options."""
    return create_async_engine(database_url, echo=False, **_engine_options(database_url))


def get_engine(database_url: str | None = None) -> AsyncEngine:
    """Get the shared engine for ``database_url`` (settings URL when None)."""
    if database_url is None:
        from sticker_drive.config.settings import get_settings

        database_url = get_settings().database_url

    if database_url not in _engine_cache:
        _engine_cache[database_url] = create_engine_for(database_url)
    return _engine_cache[database_url]


@lru_cache(maxsize=8)
def get_async_session(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the shared engine for ``database_url``."""
    return async_sessionmaker(bind=get_engine(database_url), expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create missing tables. Existing tables are left alone."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engines() -> None:
    """Close every cached pool; called on CLI exit and app shutdown."""
    for engine in _engine_cache.values():
        await engine.dispose()
    _engine_cache.clear()
    get_async_session.cache_clear()
