# stock_sync/services/stock_store.py
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stock_sync.core.exceptions import PersistenceError
from stock_sync.models.stock_snapshot import StockSnapshot
from stock_sync.schemas.sync import StockRecord

logger = logging.getLogger(__name__)


class StockStore:
    """
    Owns the stock_snapshots table.

    batch_insert() commits each batch on its own. Partial writes are not
    reconciled here; callers verify with count_matching().
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def batch_insert(self, records: Sequence[StockRecord]) -> int:
        if not records:
            return 0

        try:
            await self.db.execute(
                insert(StockSnapshot),
                [record.model_dump() for record in records]
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Batch insert of {len(records)} stock rows failed: {str(e)}")
            raise PersistenceError(f"Batch insert failed: {str(e)}") from e

        logger.info(f"Inserted {len(records)} stock rows")
        return len(records)

    async def count_matching(
        self,
        warehouse_id: str,
        sync_timestamp: Optional[datetime] = None,
        stock_moment: Optional[datetime] = None
    ) -> int:
        """Exact-match count by warehouse and sync timestamp and/or stock moment."""
        stmt = select(func.count(StockSnapshot.id)).where(StockSnapshot.warehouse_id == warehouse_id)
        if sync_timestamp is not None:
            stmt = stmt.where(StockSnapshot.sync_timestamp == sync_timestamp)
        if stock_moment is not None:
            stmt = stmt.where(StockSnapshot.stock_moment == stock_moment)

        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Count for warehouse {warehouse_id} failed: {str(e)}")
            raise PersistenceError(f"Verification query failed: {str(e)}") from e
        return result.scalar_one()

    async def count_all(self) -> int:
        result = await self.db.execute(select(func.count(StockSnapshot.id)))
        return result.scalar_one()

    async def summarize_by_warehouse(self) -> List[Tuple[str, int, datetime, datetime]]:
        """(warehouse_id, record_count, first_sync, last_sync), largest first."""
        record_count = func.count(StockSnapshot.id).label("record_count")
        stmt = (
            select(
                StockSnapshot.warehouse_id,
                record_count,
                func.min(StockSnapshot.sync_timestamp),
                func.max(StockSnapshot.sync_timestamp),
            )
            .group_by(StockSnapshot.warehouse_id)
            .order_by(record_count.desc())
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]

    async def latest(self, limit: int = 10) -> List[StockSnapshot]:
        stmt = (
            select(StockSnapshot)
            .order_by(StockSnapshot.sync_timestamp.desc(), StockSnapshot.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
