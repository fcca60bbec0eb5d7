from __future__ import annotations

import logging
from typing import Optional

from ..errors import CatalogWriteError, ImageUnavailable, RecordValidationError
from ..host import InlineExecutor, MainThreadExecutor
from ..imaging import IconHandle, ImageEncoder, PillowPngEncoder
from ..utils.fs import atomic_write_bytes, atomic_write_text, ensure_dir
from .codec import decode_record, encode_record
from .models import DescriptionRecord, ItemRecord
from .paths import DataLayout

logger = logging.getLogger(__name__)


class CatalogStore:
    """Per-item record store under items/{slot}/{shard}/{id}/.

    Holds no lock: callers must not issue concurrent puts for the same key.
    Icon pixels are read and encoded through `executor`, which puts that work
    on the host's rendering thread; file writes happen on the calling thread.
    """

    def __init__(
        self,
        layout: DataLayout,
        encoder: Optional[ImageEncoder] = None,
        executor: Optional[MainThreadExecutor] = None,
    ) -> None:
        self.layout = layout
        self.encoder = encoder or PillowPngEncoder()
        self.executor = executor or InlineExecutor()

    # Public API

    def get(self, save_slot: int, item_id: int) -> Optional[ItemRecord]:
        """Return the stored record, or None when it is missing or unreadable.

        Unreadable records are logged and reported as missing so the next
        scan re-exports them.
        """
        path = self.layout.metadata_path(save_slot, item_id)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                text = f.read()
        except OSError as exc:
            logger.error("Failed to read metadata for item %s: %s", item_id, exc)
            return None
        try:
            record = decode_record(text, ItemRecord)
        except RecordValidationError as exc:
            logger.error("Malformed metadata for item %s at %s: %s", item_id, path, exc)
            return None
        if record.id != item_id:
            logger.error("Metadata at %s belongs to item %s, expected %s", path, record.id, item_id)
            return None
        return record

    def put(
        self,
        save_slot: int,
        item_id: int,
        record: ItemRecord,
        description: Optional[DescriptionRecord] = None,
        icon: Optional[IconHandle] = None,
    ) -> bool:
        """Overwrite the item's files wholesale.

        The icon and description are written before metadata.json, so a put
        that fails part-way leaves no fresh metadata behind and the item is
        exported again on the next scan.

        Returns:
            True if an icon was exported, False if there was none or its pixels were unreadable.

        Raises:
            CatalogWriteError: on any file I/O failure.
        """
        item_dir = self.layout.item_dir(save_slot, item_id)
        try:
            ensure_dir(item_dir)
        except OSError as exc:
            raise CatalogWriteError(f"Cannot create {item_dir}: {exc}") from exc

        icon_written = self._write_icon(save_slot, item_id, icon) if icon is not None else False

        if description is not None:
            path = self.layout.description_path(save_slot, item_id)
            try:
                atomic_write_text(path, encode_record(description))
            except OSError as exc:
                raise CatalogWriteError(f"Failed to write description for item {item_id}: {exc}") from exc

        path = self.layout.metadata_path(save_slot, item_id)
        try:
            atomic_write_text(path, encode_record(record))
        except OSError as exc:
            raise CatalogWriteError(f"Failed to write metadata for item {item_id}: {exc}") from exc
        logger.debug("Exported item %s to %s", item_id, item_dir)
        return icon_written

    # Internal utilities

    def _encode_icon(self, icon: IconHandle) -> Optional[bytes]:
        # Runs on the host rendering thread
        region = icon.read_region()
        if region is None:
            return None
        return self.encoder.encode(region)

    def _write_icon(self, save_slot: int, item_id: int, icon: IconHandle) -> bool:
        try:
            data = self.executor.call(self._encode_icon, icon)
        except ImageUnavailable as exc:
            logger.debug("Icon for item %s is not readable: %s", item_id, exc)
            return False
        if data is None:
            logger.debug("Icon for item %s is not readable", item_id)
            return False
        path = self.layout.icon_path(save_slot, item_id)
        try:
            atomic_write_bytes(path, data)
        except OSError as exc:
            raise CatalogWriteError(f"Failed to write icon for item {item_id}: {exc}") from exc
        logger.debug("Exported %s (%d bytes)", path, len(data))
        return True
