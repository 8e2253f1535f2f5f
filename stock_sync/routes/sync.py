# stock_sync/routes/sync.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from stock_sync.core.config import Settings, get_settings
from stock_sync.core.exceptions import SyncAlreadyRunningError, ValidationError
from stock_sync.dependencies import get_run_lock, get_scheduler
from stock_sync.scheduler import SyncScheduler
from stock_sync.services.sync_pipeline import generate_date_range
from stock_sync.services import sync_runner

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sync", tags=["sync"])


def _start_background(request: Request, coro, label: str) -> None:
    """Run the coroutine detached from the request; keep a reference until done."""

    async def _runner():
        try:
            summary = await coro
            logger.info(f"{label} finished: total={summary.total} success={summary.success} failed={summary.failed}")
        except SyncAlreadyRunningError:
            logger.warning(f"{label} skipped: another run is in progress")
        except Exception:
            logger.exception(f"{label} failed")

    tasks = request.app.state.background_tasks
    task = asyncio.create_task(_runner())
    tasks.add(task)
    task.add_done_callback(tasks.discard)


@router.post("/manual")
async def trigger_manual_sync(
    request: Request,
    settings: Settings = Depends(get_settings),
    run_lock: asyncio.Lock = Depends(get_run_lock),
):
    """Start a full sync in the background and return immediately"""
    if run_lock.locked():
        raise HTTPException(status_code=409, detail="A stock sync run is already in progress")

    logger.info("Manual stock sync triggered")
    _start_background(request, sync_runner.run_sync_all(settings, run_lock), "Manual stock sync")
    return {
        "message": "Sync started",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.post("/retrospective")
async def trigger_retrospective_sync(
    request: Request,
    start_date: str = Query(..., description="YYYY-MM-DD"),
    end_date: str = Query(..., description="YYYY-MM-DD"),
    settings: Settings = Depends(get_settings),
    run_lock: asyncio.Lock = Depends(get_run_lock),
):
    """Validate the range, then start a retrospective sync in the background"""
    try:
        dates = generate_date_range(start_date, end_date)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if run_lock.locked():
        raise HTTPException(status_code=409, detail="A stock sync run is already in progress")

    logger.info(f"Retrospective stock sync triggered for {start_date} - {end_date}")
    _start_background(
        request,
        sync_runner.run_sync_retrospective(start_date, end_date, settings, run_lock),
        "Retrospective stock sync",
    )
    return {
        "message": "Retrospective sync started",
        "dates": len(dates),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/status")
async def sync_status(
    settings: Settings = Depends(get_settings),
    run_lock: asyncio.Lock = Depends(get_run_lock),
    scheduler: Optional[SyncScheduler] = Depends(get_scheduler),
):
    """Configured schedule and whether a run is in progress (no live progress)"""
    return {
        "schedule": settings.SYNC_SCHEDULE,
        "running": run_lock.locked(),
        "scheduler": scheduler.status() if scheduler else {"status": "not_initialized", "jobs": []},
    }
