"""
Decoding of stock report pages.

The report endpoint answers either with an envelope `{"rows": [...]}` or with a
bare JSON array. Anything else is treated as "no recognisable rows", which ends
pagination.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class PageShape(str, Enum):
    ROWS_ENVELOPE = "rows_envelope"
    BARE_ARRAY = "bare_array"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class StockPage:
    shape: PageShape
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def recognized(self) -> bool:
        return self.shape is not PageShape.UNRECOGNIZED


def decode_page(payload: Any) -> StockPage:
    if isinstance(payload, dict) and isinstance(payload.get("rows"), list):
        return StockPage(PageShape.ROWS_ENVELOPE, payload["rows"])
    if isinstance(payload, list):
        return StockPage(PageShape.BARE_ARRAY, payload)
    return StockPage(PageShape.UNRECOGNIZED)
