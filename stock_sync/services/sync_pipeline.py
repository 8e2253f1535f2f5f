# stock_sync/services/sync_pipeline.py
"""
Stock sync pipeline.

For every warehouse (and, in retrospective mode, every date) the pipeline
fetches the snapshot, maps the rows, batch-inserts them and records the
outcome. Warehouses are processed one at a time; a failure is recorded for
that warehouse and the run moves on.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional

from stock_sync.core.exceptions import SyncAlreadyRunningError, ValidationError
from stock_sync.schemas.sync import StockRecord, SyncOutcome, SyncSummary
from stock_sync.services.event_log import EventLog
from stock_sync.services.record_transformer import map_row
from stock_sync.services.stock_api.client import (
    MOMENT_FORMAT,
    RETROSPECTIVE_TIME,
    StockApiClient,
    normalize_moment,
)
from stock_sync.services.stock_store import StockStore
from stock_sync.services.warehouse_source import WarehouseSource

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_date_range(start_date: str, end_date: str) -> List[str]:
    """
    Every calendar day from start_date to end_date inclusive, as
    "YYYY-MM-DD 07:00:00". Plain date arithmetic, so the local timezone
    of the process cannot shift the days.

    Raises:
        ValidationError: On a malformed date or start_date > end_date
    """
    try:
        start = datetime.strptime(start_date.strip(), DATE_FORMAT).date()
        end = datetime.strptime(end_date.strip(), DATE_FORMAT).date()
    except (ValueError, AttributeError):
        raise ValidationError(f"Invalid date range {start_date!r} - {end_date!r}, use YYYY-MM-DD")

    if start > end:
        raise ValidationError(f"Start date {start_date} is after end date {end_date}")

    dates = []
    current: date = start
    while current <= end:
        dates.append(f"{current.strftime(DATE_FORMAT)} {RETROSPECTIVE_TIME}")
        current += timedelta(days=1)
    return dates


class SyncPipeline:
    """
    Orchestrates fetch -> transform -> persist -> verify per warehouse.

    Args:
        client: Stock API client
        store: Store bound to this run's database session
        warehouse_source: Source of warehouse IDs, re-read on every run
        event_log: Audit sink for outcome lines
        utc_offset_hours: Fixed correction added to the UTC clock for sync timestamps
        run_lock: Shared lock making whole runs mutually exclusive (optional)
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        client: StockApiClient,
        store: StockStore,
        warehouse_source: WarehouseSource,
        event_log: EventLog,
        utc_offset_hours: int = 3,
        run_lock: Optional[asyncio.Lock] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.store = store
        self.warehouse_source = warehouse_source
        self.event_log = event_log
        self.utc_offset = timedelta(hours=utc_offset_hours)
        self.run_lock = run_lock
        self.clock = clock

    def sync_timestamp(self) -> datetime:
        return self.clock() + self.utc_offset

    @asynccontextmanager
    async def _exclusive_run(self):
        if self.run_lock is None:
            yield
            return
        if self.run_lock.locked():
            raise SyncAlreadyRunningError("A stock sync run is already in progress")
        async with self.run_lock:
            yield

    def _map_rows(self, rows, warehouse_id: str, sync_timestamp: datetime,
                  stock_moment: Optional[datetime] = None) -> List[StockRecord]:
        records = []
        for row in rows:
            record = map_row(row, warehouse_id, sync_timestamp, stock_moment)
            if record is not None:
                records.append(record)
        discarded = len(rows) - len(records)
        if discarded:
            logger.warning(f"Discarded {discarded} of {len(rows)} rows without a product ID for warehouse {warehouse_id}")
        return records

    def _finish(self, outcome: SyncOutcome, note: str = "") -> SyncOutcome:
        error = outcome.error or note
        self.event_log.record(outcome.warehouse, outcome.success, outcome.record_count, error)
        return outcome

    async def sync_warehouse(self, warehouse_id: str) -> SyncOutcome:
        """Sync the current snapshot of one warehouse. Never raises."""
        try:
            self.event_log.info(f"Starting sync for warehouse {warehouse_id}")

            rows = await self.client.fetch_snapshot(warehouse_id)
            if not rows:
                return self._finish(SyncOutcome(warehouse=warehouse_id, success=True), note="No data")

            self.event_log.info(f"Received {len(rows)} rows from API for warehouse {warehouse_id}")

            sync_timestamp = self.sync_timestamp()
            records = self._map_rows(rows, warehouse_id, sync_timestamp)
            if not records:
                return self._finish(SyncOutcome(
                    warehouse=warehouse_id,
                    success=False,
                    error=f"None of the {len(rows)} rows had a resolvable product ID",
                ))

            inserted = await self.store.batch_insert(records)
            logger.info(f"Batch insert reported {inserted} rows for warehouse {warehouse_id}")

            # Confirm the rows actually landed
            count = await self.store.count_matching(warehouse_id, sync_timestamp=sync_timestamp)
            self.event_log.info(
                f"Verification: {count} rows stored for warehouse {warehouse_id} at {sync_timestamp.isoformat()}"
            )
            if count == 0:
                return self._finish(SyncOutcome(
                    warehouse=warehouse_id,
                    success=False,
                    error="No rows found in the database after insert",
                ))

            return self._finish(SyncOutcome(warehouse=warehouse_id, success=True, record_count=count))

        except Exception as e:
            logger.exception(f"Error syncing warehouse {warehouse_id}")
            return self._finish(SyncOutcome(warehouse=warehouse_id, success=False, error=str(e)))

    async def sync_warehouse_for_date(self, warehouse_id: str, date_time: str) -> SyncOutcome:
        """
        Sync one warehouse as of a past moment.

        Every record carries stock_moment. There is no count verification,
        since retrospective batches cannot be singled out by the sync timestamp.
        """
        try:
            moment = normalize_moment(date_time)
            stock_moment = datetime.strptime(moment, MOMENT_FORMAT)
            self.event_log.info(f"Requesting stock for warehouse {warehouse_id} at {moment}")

            rows = await self.client.fetch_snapshot_at(warehouse_id, moment)
            if not rows:
                return self._finish(
                    SyncOutcome(warehouse=warehouse_id, date=moment, success=True),
                    note=f"No data for {moment}",
                )

            records = self._map_rows(rows, warehouse_id, self.sync_timestamp(), stock_moment)
            if not records:
                return self._finish(SyncOutcome(
                    warehouse=warehouse_id,
                    date=moment,
                    success=False,
                    error=f"None of the {len(rows)} rows for {moment} had a resolvable product ID",
                ))

            inserted = await self.store.batch_insert(records)
            return self._finish(
                SyncOutcome(warehouse=warehouse_id, date=moment, success=True, record_count=inserted),
                note=f"For {moment}",
            )

        except Exception as e:
            logger.exception(f"Error syncing warehouse {warehouse_id} for {date_time}")
            return self._finish(SyncOutcome(
                warehouse=warehouse_id,
                date=date_time,
                success=False,
                error=f"{date_time}: {str(e)}",
            ))

    async def sync_all(self) -> SyncSummary:
        """Sync every warehouse in the source, sequentially."""
        async with self._exclusive_run():
            self.event_log.info("=== Stock sync started ===")

            warehouses = self.warehouse_source.load()
            summary = SyncSummary(warehouses=len(warehouses))
            if not warehouses:
                self.event_log.info("Warehouse list is empty, nothing to sync")
                return summary

            for warehouse_id in warehouses:
                summary.add(await self.sync_warehouse(warehouse_id))

            self.event_log.info(
                f"=== Stock sync finished. Total: {summary.total}, "
                f"Success: {summary.success}, Failed: {summary.failed} ==="
            )
            return summary

    async def sync_retrospective(self, start_date: str, end_date: str) -> SyncSummary:
        """
        Sync every warehouse for every day in [start_date, end_date].

        Dates are the outer loop, warehouses the inner one.

        Raises:
            ValidationError: If the range is malformed, before any work is done
        """
        dates = generate_date_range(start_date, end_date)

        async with self._exclusive_run():
            self.event_log.info(f"=== Retrospective sync from {start_date} to {end_date} started ===")

            warehouses = self.warehouse_source.load()
            summary = SyncSummary(warehouses=len(warehouses), dates=dates)
            if not warehouses:
                self.event_log.info("Warehouse list is empty, retrospective sync skipped")
                return summary

            self.event_log.info(f"Processing {len(dates)} dates for {len(warehouses)} warehouses")

            for moment in dates:
                self.event_log.info(f"--- Processing {moment} ---")
                for warehouse_id in warehouses:
                    summary.add(await self.sync_warehouse_for_date(warehouse_id, moment))

            self.event_log.info(
                f"=== Retrospective sync finished. Dates: {len(dates)}, Warehouses: {len(warehouses)}, "
                f"Success: {summary.success}, Failed: {summary.failed}, Records: {summary.total_records} ==="
            )
            return summary
