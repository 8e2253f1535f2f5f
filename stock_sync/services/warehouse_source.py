# stock_sync/services/warehouse_source.py
import logging
from pathlib import Path
from typing import List, Optional, Union

from stock_sync.services.event_log import EventLog

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"


class WarehouseSource:
    """
    Newline-delimited list of warehouse IDs.

    The file is re-read on every load() so edits take effect on the next run.
    Blank lines and lines starting with '#' are ignored.
    """

    def __init__(self, path: Union[str, Path], event_log: Optional[EventLog] = None):
        self.path = Path(path)
        self.event_log = event_log

    def load(self) -> List[str]:
        try:
            if not self.path.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text("", encoding="utf-8")
                self._info(f"Warehouse list {self.path} not found, created an empty one")
                return []

            content = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._info(f"Error reading warehouse list {self.path}: {e}")
            return []

        return parse_warehouses(content)

    def _info(self, message: str) -> None:
        if self.event_log:
            self.event_log.info(message)
        else:
            logger.warning(message)


def parse_warehouses(content: str) -> List[str]:
    warehouses = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith(COMMENT_MARKER):
            continue
        warehouses.append(line)
    return warehouses
