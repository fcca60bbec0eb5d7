from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..utils.fs import ensure_dir

logger = logging.getLogger(__name__)

ITEMS_DIR = "items"
HISTORY_DIR = "history"
METADATA_FILE = "metadata.json"
DESCRIPTION_FILE = "description.json"
ICON_FILE = "icon.png"
HISTORY_NAME_FORMAT = "%Y%m%d_%H%M%S"


def shard_digit(item_id: int) -> int:
    """Single decimal digit bounding directory fan-out: abs(item_id) mod 10."""
    return abs(int(item_id)) % 10


def catalog_dir(root: Path, save_slot: int, item_id: int) -> Path:
    """items/{save_slot}/{shard}/{item_id}/ under `root`."""
    return Path(root) / ITEMS_DIR / str(save_slot) / str(shard_digit(item_id)) / str(item_id)


def history_filename(timestamp: datetime) -> str:
    return f"history_{timestamp.strftime(HISTORY_NAME_FORMAT)}.json"


def history_file(root: Path, save_slot: int, timestamp: datetime) -> Path:
    """history/{save_slot}/history_{yyyyMMdd_HHmmss}.json under `root`."""
    return Path(root) / HISTORY_DIR / str(save_slot) / history_filename(timestamp)


class DataLayout:
    """Resolves every location in the exported file tree.

    Pure apart from `provision()`; other directories are created lazily by the
    writers on first use.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    @property
    def items_root(self) -> Path:
        return self.root / ITEMS_DIR

    @property
    def history_root(self) -> Path:
        return self.root / HISTORY_DIR

    def item_dir(self, save_slot: int, item_id: int) -> Path:
        return catalog_dir(self.root, save_slot, item_id)

    def metadata_path(self, save_slot: int, item_id: int) -> Path:
        return self.item_dir(save_slot, item_id) / METADATA_FILE

    def description_path(self, save_slot: int, item_id: int) -> Path:
        return self.item_dir(save_slot, item_id) / DESCRIPTION_FILE

    def icon_path(self, save_slot: int, item_id: int) -> Path:
        return self.item_dir(save_slot, item_id) / ICON_FILE

    def history_dir(self, save_slot: int) -> Path:
        return self.history_root / str(save_slot)

    def history_path(self, save_slot: int, timestamp: datetime) -> Path:
        return history_file(self.root, save_slot, timestamp)

    def provision(self, save_slot: Optional[int] = None) -> None:
        """Create the top-level tree and the digit folders 0-9 under items/.

        With a `save_slot`, that slot's digit folders and history folder are
        created as well, so the slot is discoverable before any write. Idempotent.
        """
        ensure_dir(self.items_root)
        ensure_dir(self.history_root)
        for digit in range(10):
            ensure_dir(self.items_root / str(digit))
        if save_slot is not None:
            for digit in range(10):
                ensure_dir(self.items_root / str(save_slot) / str(digit))
            ensure_dir(self.history_dir(save_slot))
        logger.info("Directory structure ensured at: %s", self.root)
