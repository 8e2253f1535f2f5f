"""
Scheduled stock sync.

create_scheduler() returns a SyncScheduler handle owning one APScheduler cron
job. The job is fire-and-forget: it runs the pipeline, logs the summary and
never raises into the scheduler.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR, EVENT_SCHEDULER_SHUTDOWN

from stock_sync.core.config import Settings
from stock_sync.core.exceptions import SyncAlreadyRunningError
from stock_sync.schemas.sync import SyncSummary
from stock_sync.services.sync_runner import build_event_log, run_sync_all

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "stock_sync"

SyncJob = Callable[[], Awaitable[SyncSummary]]


def job_listener(event):
    """Listen to job events for logging"""
    if event.exception:
        logger.error(f"Job {event.job_id} crashed: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now()}")


def shutdown_listener(event):
    logger.info("Scheduler stopped successfully")


class SyncScheduler:
    """Handle around the scheduler, queried for status instead of module globals."""

    def __init__(self, scheduler: AsyncIOScheduler, settings: Settings, enabled: bool):
        self.scheduler = scheduler
        self.settings = settings
        self.enabled = enabled

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started successfully")
            for job in self.scheduler.get_jobs():
                logger.info(f"  - {job.name}: {job.trigger}")

    def shutdown(self, wait: bool = True) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("Scheduler shutdown requested")

    def status(self) -> Dict[str, Any]:
        jobs_info = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs_info.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None,
                "trigger": str(job.trigger)
            })

        return {
            "enabled": self.enabled,
            "schedule": self.settings.SYNC_SCHEDULE,
            "status": "running" if self.scheduler.running else "stopped",
            "jobs": jobs_info
        }


def make_sync_job(settings: Settings, run_lock: Optional[asyncio.Lock] = None) -> Callable[[], Awaitable[None]]:
    """Build the scheduled task for the given settings and run lock."""

    async def scheduled_sync() -> None:
        event_log = build_event_log(settings)
        event_log.info("Scheduled stock sync started")
        try:
            summary = await run_sync_all(settings, run_lock)
            event_log.info(f"Scheduled stock sync finished: {summary.model_dump_json(exclude={'results'})}")
        except SyncAlreadyRunningError:
            event_log.info("Scheduled stock sync skipped: another run is in progress")
        except Exception as e:
            logger.exception("Error in scheduled stock sync")
            event_log.info(f"Scheduled stock sync failed: {str(e)}")

    return scheduled_sync


def create_scheduler(
    settings: Settings,
    job: Callable[[], Awaitable[Any]],
) -> SyncScheduler:
    """Create the scheduler and register the sync job when enabled."""
    scheduler = AsyncIOScheduler()
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
    scheduler.add_listener(shutdown_listener, EVENT_SCHEDULER_SHUTDOWN)

    if settings.SYNC_SCHEDULE_ENABLED:
        scheduler.add_job(
            job,
            CronTrigger.from_crontab(settings.SYNC_SCHEDULE),
            id=SYNC_JOB_ID,
            name="Stock Sync",
            replace_existing=True,
            max_instances=1,  # Only one sync at a time
            misfire_grace_time=3600
        )
        logger.info(f"Scheduled sync job added with schedule: {settings.SYNC_SCHEDULE}")
    else:
        logger.info("Scheduled sync is disabled. Set SYNC_SCHEDULE_ENABLED=true to enable")

    return SyncScheduler(scheduler, settings, settings.SYNC_SCHEDULE_ENABLED)
