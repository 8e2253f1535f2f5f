"""
Schemas for stock records and sync outcomes.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class StockRecord(BaseModel):
    """A persistence-ready stock row produced by the record transformer."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    warehouse_id: str
    sync_timestamp: datetime
    stock_moment: Optional[datetime] = None
    quantity_on_hand: int = 0
    quantity_reserved: int = 0
    quantity_available: int = 0
    quantity_in_transit: int = 0
    average_cost: Decimal = Decimal("0.00")
    days_on_stock: int = 0


class SyncOutcome(BaseModel):
    """Result of syncing one warehouse (optionally for one date)."""

    warehouse: str
    date: Optional[str] = None
    success: bool
    record_count: int = 0
    error: str = ""


class SyncSummary(BaseModel):
    """Aggregate of all outcomes for one pipeline run."""

    total: int = 0
    success: int = 0
    failed: int = 0
    total_records: int = 0
    warehouses: int = 0
    dates: List[str] = Field(default_factory=list)
    results: List[SyncOutcome] = Field(default_factory=list)

    def add(self, outcome: SyncOutcome) -> None:
        self.results.append(outcome)
        self.total += 1
        if outcome.success:
            self.success += 1
            self.total_records += outcome.record_count
        else:
            self.failed += 1
