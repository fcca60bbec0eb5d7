from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Set

from ..host import ItemCollection, ItemDefinition
from ..slots import SaveSlotProvider, resolve_save_slot
from ..storage.catalog_store import CatalogStore
from ..storage.models import utcnow
from ..utils.polling import wait_until
from .detector import ChangeDetector
from .snapshot import build_snapshot

logger = logging.getLogger(__name__)


@dataclass
class ScanSummary:
    """Running totals for one pass over the item master collection."""

    save_slot: int
    total: int = 0
    unresolved: int = 0
    exported: int = 0
    skipped: int = 0
    errors: int = 0
    images_exported: int = 0
    images_skipped: int = 0
    duration: float = 0.0

    def log(self, export_root: object = "") -> None:
        logger.info("========================================")
        logger.info("Item Collection Summary (save slot %s)", self.save_slot)
        logger.info("========================================")
        logger.info("Total Items Found:         %d", self.total)
        logger.info("Unresolved Entries:        %d", self.unresolved)
        logger.info("Items Exported:            %d", self.exported)
        logger.info("Items Skipped (unchanged): %d", self.skipped)
        logger.info("Errors:                    %d", self.errors)
        logger.info("Images Exported:           %d", self.images_exported)
        logger.info("Images Skipped:            %d (unreadable or missing)", self.images_skipped)
        logger.info("Duration:                  %.2fs", self.duration)
        if export_root:
            logger.info("Export Location:           %s", export_root)
        logger.info("========================================")


class CatalogScanner:
    """One-shot exporter of the whole item master collection.

    `scan()` runs the pass on the calling thread; `start()` runs it on a
    background thread so the host's main loop is never blocked. Icon encoding
    reaches the host thread through the store's executor.
    """

    def __init__(
        self,
        collection: ItemCollection,
        store: CatalogStore,
        detector: Optional[ChangeDetector] = None,
        slot_provider: Optional[SaveSlotProvider] = None,
        description_language: str = "default",
        clock: Callable[[], datetime] = utcnow,
        ready_poll_interval: float = 0.1,
        ready_timeout: Optional[float] = 30.0,
    ) -> None:
        self.collection = collection
        self.store = store
        self.detector = detector or ChangeDetector()
        self.slot_provider = slot_provider
        self.description_language = description_language
        self.clock = clock
        self.ready_poll_interval = ready_poll_interval
        self.ready_timeout = ready_timeout
        self._lock = threading.Lock()
        self._cataloged: Dict[int, Set[int]] = {}
        self._last_summary: Optional[ScanSummary] = None

    @property
    def last_summary(self) -> Optional[ScanSummary]:
        with self._lock:
            return self._last_summary

    def is_cataloged(self, item_id: int, save_slot: int) -> bool:
        """True if a scan in this process exported the item or found it unchanged."""
        with self._lock:
            return item_id in self._cataloged.get(save_slot, set())

    def scan(self, save_slot: Optional[int] = None) -> ScanSummary:
        """Export every changed item once, then return the run's totals.

        A failing item is logged and counted; the pass always continues with
        the next entry.
        """
        if save_slot is None:
            save_slot = resolve_save_slot(self.slot_provider)
        summary = ScanSummary(save_slot=save_slot)
        started = time.monotonic()
        entries = list(self.collection.entries())
        logger.info("Starting item collection for save slot %s (%d entries)", save_slot, len(entries))

        for entry in entries:
            definition = getattr(entry, "definition", None)
            if definition is None:
                summary.unresolved += 1
                continue
            summary.total += 1
            item_id = getattr(definition, "item_id", None)
            try:
                self._export_item(definition, save_slot, summary)
            except Exception as exc:  # noqa: BLE001 - one item must never abort the pass
                summary.errors += 1
                logger.error("Error exporting item %s: %s", item_id, exc)
                logger.debug("Export failure details for item %s", item_id, exc_info=True)

        summary.duration = time.monotonic() - started
        with self._lock:
            self._last_summary = summary
        summary.log(self.store.layout.root)
        return summary

    def start(self, save_slot: Optional[int] = None) -> threading.Thread:
        """Run a scan on a background daemon thread once the collection is ready."""
        thread = threading.Thread(
            target=self._run_in_background,
            args=(save_slot,),
            name="lootledger-catalog-scan",
            daemon=True,
        )
        thread.start()
        return thread

    # Internal utilities

    def _run_in_background(self, save_slot: Optional[int]) -> None:
        try:
            ready = wait_until(
                self.collection.is_ready,
                poll_interval=self.ready_poll_interval,
                timeout=self.ready_timeout,
            )
            if not ready:
                logger.warning("Item collection not ready after %ss; deferring scan", self.ready_timeout)
                return
            self.scan(save_slot)
        except Exception as exc:  # noqa: BLE001 - background unit of work must not die noisily
            logger.exception("Error during item collection: %s", exc)

    def _export_item(self, definition: ItemDefinition, save_slot: int, summary: ScanSummary) -> None:
        snapshot = build_snapshot(definition)
        item_id = snapshot.item_id
        stored = self.store.get(save_slot, item_id)
        result = self.detector.detect(snapshot, stored, now=self.clock())
        if not result.changed:
            summary.skipped += 1
        else:
            icon_written = self.store.put(
                save_slot,
                item_id,
                result.record,
                description=snapshot.to_description(self.description_language),
                icon=getattr(definition, "icon", None),
            )
            summary.exported += 1
            if icon_written:
                summary.images_exported += 1
            else:
                summary.images_skipped += 1
        with self._lock:
            self._cataloged.setdefault(save_slot, set()).add(item_id)
