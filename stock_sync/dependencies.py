import asyncio
from typing import AsyncGenerator, Optional
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stock_sync.core.config import Settings, get_settings
from stock_sync.database import get_session_factory
from stock_sync.scheduler import SyncScheduler


async def get_db(settings: Settings = Depends(get_settings)) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with get_session_factory(settings)() as session:
        try:
            yield session
        finally:
            await session.close()


def get_run_lock(request: Request) -> asyncio.Lock:
    """Process-wide lock shared by every sync run."""
    return request.app.state.run_lock


def get_scheduler(request: Request) -> Optional[SyncScheduler]:
    return getattr(request.app.state, "scheduler", None)
