"""
Last-sync watermark persistence.

The state file holds a single JSON record ``{"lastSync": "<ISO 8601>"}``
that is overwritten wholesale after each successful run.
"""

import logging
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from .exceptions import StateFileError
from .models import SyncState

logger = logging.getLogger(__name__)


class SyncStateStore:
    """Reads and writes the last-sync timestamp."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> datetime | None:
        """
        Read the last-sync timestamp.

        A missing, unreadable or malformed file is treated as "never
        synced", which makes the next run a full backfill.
        """
        if not self.path.exists():
            logger.info(f"No sync state at {self.path}, running full backfill")
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read sync state {self.path}: {e}")
            return None

        try:
            state = SyncState.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed sync state {self.path}: {e.error_count()} error(s)")
            logger.debug(f"State file contents: {raw!r}")
            return None

        if state.last_sync is not None:
            logger.info(f"Last sync: {state.last_sync.isoformat()}")
        return state.last_sync

    def save(self, timestamp: datetime) -> None:
        """
        Overwrite the state file with ``timestamp``.

        Uses atomic write (write to temp file, then rename) so a crash
        never leaves a half-written record behind.

        Raises:
            StateFileError: If the write fails
        """
        content = SyncState(last_sync=timestamp).model_dump_json(by_alias=True, indent=2)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(content + "\n", encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StateFileError(str(self.path), str(e)) from e

        logger.info(f"Updated last sync time to {timestamp.isoformat()}")

    def clear(self) -> bool:
        """Remove the state file. Returns True if a file was removed."""
        if not self.path.exists():
            return False
        try:
            self.path.unlink()
        except OSError as e:
            raise StateFileError(str(self.path), str(e)) from e
        logger.info(f"Removed sync state {self.path}")
        return True
