"""
Maps raw stock report rows to persistence-ready StockRecord values.

Pure functions: no I/O and no shared state.
"""
import logging
import math
import re
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from stock_sync.schemas.sync import StockRecord

logger = logging.getLogger(__name__)

# .../entity/product/<uuid>?expand=... or .../entity/variant/<uuid>
PRODUCT_HREF_PATTERN = re.compile(r"/entity/(product|variant)/([a-f0-9-]+)(\?|$)", re.IGNORECASE)

CENTS = Decimal("0.01")


def extract_product_id(href: Optional[str]) -> Optional[str]:
    if not isinstance(href, str) or not href:
        return None
    match = PRODUCT_HREF_PATTERN.search(href)
    return match.group(2) if match else None


def _floor(value: Any) -> int:
    # Missing, null and zero all map to 0
    return math.floor(float(value or 0))


def _minor_to_major(value: Any) -> Decimal:
    return (Decimal(str(value or 0)) / 100).quantize(CENTS, rounding=ROUND_HALF_UP)


def map_row(
    row: Dict[str, Any],
    warehouse_id: str,
    sync_timestamp: datetime,
    stock_moment: Optional[datetime] = None
) -> Optional[StockRecord]:
    """
    Map one API row to a StockRecord.

    Returns None (the row is discarded) when the row is malformed or no product
    ID can be extracted from its meta.href. Quantities and days are floored,
    never rounded; the average cost is converted from minor units and rounded to cents.
    """
    meta = row.get("meta") if isinstance(row, dict) else None
    href = meta.get("href") if isinstance(meta, dict) else None
    product_id = extract_product_id(href)
    if not product_id:
        logger.warning(f"Could not extract product ID from: {href}")
        return None

    return StockRecord(
        product_id=product_id,
        warehouse_id=warehouse_id,
        sync_timestamp=sync_timestamp,
        stock_moment=stock_moment,
        quantity_on_hand=_floor(row.get("stock")),
        quantity_reserved=_floor(row.get("reserve")),
        quantity_available=_floor(row.get("quantity")),
        quantity_in_transit=_floor(row.get("inTransit")),
        average_cost=_minor_to_major(row.get("price")),
        days_on_stock=_floor(row.get("stockDays")),
    )
