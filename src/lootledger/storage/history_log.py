from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..errors import HistoryWriteError
from ..utils.fs import atomic_write_text, ensure_dir
from .codec import encode_record
from .models import AcquisitionBatch
from .paths import DataLayout

logger = logging.getLogger(__name__)


class HistoryLog:
    """Append-only, time-sharded acquisition log: one immutable file per batch.

    Files are named from the batch timestamp at one-second resolution, so two
    batches for the same slot within the same second map to the same file and
    the later one replaces the earlier. That collision is logged, not resolved.
    """

    def __init__(self, layout: DataLayout) -> None:
        self.layout = layout

    def append(self, save_slot: int, batch: AcquisitionBatch) -> Path:
        """Write `batch` to a new history file and return its path.

        Raises:
            HistoryWriteError: when the file cannot be written.
        """
        path = self.layout.history_path(save_slot, batch.timestamp)
        try:
            ensure_dir(path.parent)
            if path.exists():
                logger.warning(
                    "History file %s already exists for this second; it will be overwritten", path.name
                )
            atomic_write_text(path, encode_record(batch))
        except OSError as exc:
            raise HistoryWriteError(f"Failed to write history batch {path.name}: {exc}") from exc
        logger.debug("Written history batch: %s (%d items)", path.name, len(batch.items))
        return path

    def list_files(self, save_slot: int) -> List[Path]:
        """History files for a slot in timestamp (= flush) order."""
        directory = self.layout.history_dir(save_slot)
        if not directory.is_dir():
            return []
        return sorted(directory.glob("history_*.json"))
