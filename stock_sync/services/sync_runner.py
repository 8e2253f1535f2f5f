"""
Wires settings, database session and collaborators into a SyncPipeline.

Used by the scheduler, the trigger routes and the CLI.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from stock_sync.core.config import Settings, StockApiConfig, get_settings
from stock_sync.database import get_session
from stock_sync.schemas.sync import SyncSummary
from stock_sync.services.event_log import EventLog
from stock_sync.services.stock_api.client import StockApiClient
from stock_sync.services.stock_store import StockStore
from stock_sync.services.sync_pipeline import SyncPipeline
from stock_sync.services.warehouse_source import WarehouseSource

logger = logging.getLogger(__name__)


def build_event_log(settings: Settings) -> EventLog:
    return EventLog(settings.SYNC_LOG_FILE)


def build_client(settings: Settings) -> StockApiClient:
    return StockApiClient(StockApiConfig.from_settings(settings))


@asynccontextmanager
async def open_pipeline(
    settings: Optional[Settings] = None,
    run_lock: Optional[asyncio.Lock] = None,
) -> AsyncIterator[SyncPipeline]:
    """Yield a pipeline bound to a fresh database session."""
    settings = settings or get_settings()
    event_log = build_event_log(settings)

    async with get_session(settings) as session:
        yield SyncPipeline(
            client=build_client(settings),
            store=StockStore(session),
            warehouse_source=WarehouseSource(settings.WAREHOUSES_FILE, event_log),
            event_log=event_log,
            utc_offset_hours=settings.SYNC_UTC_OFFSET_HOURS,
            run_lock=run_lock,
        )


async def run_sync_all(
    settings: Optional[Settings] = None,
    run_lock: Optional[asyncio.Lock] = None,
) -> SyncSummary:
    async with open_pipeline(settings, run_lock) as pipeline:
        return await pipeline.sync_all()


async def run_sync_retrospective(
    start_date: str,
    end_date: str,
    settings: Optional[Settings] = None,
    run_lock: Optional[asyncio.Lock] = None,
) -> SyncSummary:
    async with open_pipeline(settings, run_lock) as pipeline:
        return await pipeline.sync_retrospective(start_date, end_date)
