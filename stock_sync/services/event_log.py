# stock_sync/services/event_log.py
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class EventLog:
    """
    Append-only audit log of sync outcomes.

    Each line is either
        <timestamp> | <warehouse> | SUCCESS|ERROR | Records: <n>[ | Error: <msg>]
    or
        <timestamp> | INFO | <message>

    Lines are mirrored to the module logger. Failing to write the file is
    logged but never raised, so auditing cannot interrupt a sync.
    """

    def __init__(self, log_file: Union[str, Path]):
        self.log_file = Path(log_file)
        self._ensure_log_directory()

    def _ensure_log_directory(self) -> None:
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create log directory {self.log_file.parent}: {e}")

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def _append(self, line: str) -> None:
        try:
            with self.log_file.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError as e:
            logger.error(f"Error writing to sync log {self.log_file}: {e}")

    def record(self, warehouse_id: str, success: bool, record_count: int = 0, error: str = "") -> str:
        """Append a structured outcome line for one warehouse."""
        status = "SUCCESS" if success else "ERROR"
        line = f"{self._timestamp()} | {warehouse_id} | {status} | Records: {record_count}"
        if error:
            line += f" | Error: {error}"

        self._append(line)
        if success:
            logger.info(line)
        else:
            logger.error(line)
        return line

    def info(self, message: str) -> str:
        """Append a free-text information line."""
        line = f"{self._timestamp()} | INFO | {message}"
        self._append(line)
        logger.info(line)
        return line
