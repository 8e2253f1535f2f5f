# stock_sync/models/stock_snapshot.py
"""
Stock Snapshot Model

One row per product x warehouse x sync event. Rows are only ever appended:
every sync run writes a fresh set, history is kept for reporting.
"""

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, Numeric, String
from stock_sync.database import Base


class StockSnapshot(Base):
    """
    Persisted stock quantities for one product in one warehouse.

    `stock_moment` is only filled by retrospective syncs and holds the
    point in time the quantities were requested for.
    """
    __tablename__ = "stock_snapshots"

    # SQLite only autoincrements INTEGER primary keys
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    # Identifiers (UUIDs from the stock API)
    product_id = Column(String(36), nullable=False)
    warehouse_id = Column(String(36), nullable=False)

    # When the snapshot was captured / which moment it represents
    sync_timestamp = Column(DateTime(timezone=True), nullable=False)
    stock_moment = Column(DateTime(timezone=False), nullable=True)

    # Quantities
    quantity_on_hand = Column(Integer, nullable=True, default=0)      # stock
    quantity_reserved = Column(Integer, nullable=True, default=0)     # reserve
    quantity_available = Column(Integer, nullable=True, default=0)    # quantity
    quantity_in_transit = Column(Integer, nullable=True, default=0)   # inTransit

    # Financials (price / 100, kept in major units)
    average_cost = Column(Numeric(9, 2), nullable=True, default=0)

    # Analytics
    days_on_stock = Column(Integer, nullable=True, default=0)         # stockDays

    __table_args__ = (
        Index('ix_stock_snapshots_product', 'product_id'),
        Index('ix_stock_snapshots_warehouse', 'warehouse_id'),
        Index('ix_stock_snapshots_sync_timestamp', 'sync_timestamp'),
        Index('ix_stock_snapshots_stock_moment', 'stock_moment'),
        Index('ix_stock_snapshots_warehouse_sync', 'warehouse_id', 'sync_timestamp'),
        Index('ix_stock_snapshots_warehouse_moment', 'warehouse_id', 'stock_moment'),
        Index('ix_stock_snapshots_product_warehouse', 'product_id', 'warehouse_id'),
    )

    def __repr__(self):
        return (
            f"<StockSnapshot(product_id={self.product_id}, "
            f"warehouse_id={self.warehouse_id}, "
            f"on_hand={self.quantity_on_hand}, "
            f"sync_timestamp={self.sync_timestamp})>"
        )
