# stock_sync/database.py

from functools import lru_cache
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import declarative_base
from contextlib import asynccontextmanager

from stock_sync.core.config import Settings, get_settings

Base = declarative_base()


@lru_cache()
def _engine_for(database_url: str) -> AsyncEngine:
    if not database_url:
        raise ValueError("DATABASE_URL is not set in environment variables")

    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=False, future=True)

    return create_async_engine(
        database_url,
        echo=False,
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800
    )


@lru_cache()
def _session_factory_for(database_url: str) -> async_sessionmaker:
    return async_sessionmaker(
        _engine_for(database_url),
        class_=AsyncSession,
        expire_on_commit=False
    )


def get_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """Engine for the DATABASE_URL of `settings` (environment settings by default), one per URL."""
    return _engine_for((settings or get_settings()).async_database_url)


def get_session_factory(settings: Optional[Settings] = None) -> async_sessionmaker:
    return _session_factory_for((settings or get_settings()).async_database_url)


@asynccontextmanager
async def get_session(settings: Optional[Settings] = None) -> AsyncSession:
    session = get_session_factory(settings)()
    try:
        yield session
    finally:
        await session.close()


async def create_tables(engine: AsyncEngine = None, settings: Optional[Settings] = None) -> None:
    """Create all tables registered on Base (no-op for existing tables)."""
    # Importing the models registers them with Base
    from stock_sync import models  # noqa: F401

    engine = engine or get_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
