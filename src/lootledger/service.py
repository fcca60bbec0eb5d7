from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from .acquisition.debouncer import AcquisitionDebouncer
from .acquisition.scheduler import SingleShotScheduler
from .acquisition.sources import InventoryEventSource
from .catalog.detector import ChangeDetector
from .catalog.scanner import CatalogScanner
from .config import ExporterConfig
from .host import ItemCollection, MainThreadExecutor
from .imaging import ImageEncoder
from .logging_config import PACKAGE_LOGGER, resolve_level
from .slots import SaveSlotProvider, resolve_save_slot
from .storage.catalog_store import CatalogStore
from .storage.history_log import HistoryLog
from .storage.paths import DataLayout

logger = logging.getLogger(__name__)


class ExportService:
    """Wires the catalog and acquisition sides onto one data root.

    The host calls `start_collection()` and `start_monitoring()` when a
    gameplay scene is ready and `shutdown()` when the exporter is disabled.
    Neither start call blocks the caller.
    """

    def __init__(
        self,
        config: ExporterConfig,
        collection: ItemCollection,
        encoder: Optional[ImageEncoder] = None,
        executor: Optional[MainThreadExecutor] = None,
        slot_provider: Optional[SaveSlotProvider] = None,
        scheduler: Optional[SingleShotScheduler] = None,
    ) -> None:
        self.config = config
        self.slot_provider = slot_provider
        logging.getLogger(PACKAGE_LOGGER).setLevel(resolve_level(config.log_level))

        self.layout = DataLayout(config.data_root)
        self.store = CatalogStore(self.layout, encoder=encoder, executor=executor)
        self.history = HistoryLog(self.layout)
        self.scanner = CatalogScanner(
            collection,
            self.store,
            detector=ChangeDetector(config.weight_tolerance, config.stat_tolerance),
            slot_provider=slot_provider,
            description_language=config.description_language,
            ready_poll_interval=config.ready_poll_interval,
            ready_timeout=config.ready_timeout,
        )
        self.debouncer = AcquisitionDebouncer(
            self.history,
            slot_provider=slot_provider,
            window=config.debounce_seconds,
            scheduler=scheduler,
            ready_poll_interval=config.ready_poll_interval,
            ready_timeout=config.ready_timeout,
        )
        self._monitor_thread: Optional[threading.Thread] = None

    def current_slot(self) -> int:
        return resolve_save_slot(self.slot_provider)

    def prepare(self, save_slot: Optional[int] = None) -> None:
        """Provision the slot's digit folders so the tree is discoverable before any write."""
        if not self.config.provision_shards:
            return
        slot = self.current_slot() if save_slot is None else save_slot
        try:
            self.layout.provision(slot)
        except OSError as exc:
            logger.error("Failed to create directory structure under %s: %s", self.layout.root, exc)

    def start_collection(self) -> threading.Thread:
        """Start a background catalog scan for the active save slot."""
        slot = self.current_slot()
        self.prepare(slot)
        logger.info("Starting data collection for save slot %s", slot)
        return self.scanner.start(slot)

    def start_monitoring(self, sources: Iterable[InventoryEventSource]) -> threading.Thread:
        """Start acquisition monitoring on a background thread (waits for the sources)."""
        sources = list(sources)
        thread = threading.Thread(
            target=self._monitor,
            args=(sources,),
            name="lootledger-acquisition-start",
            daemon=True,
        )
        self._monitor_thread = thread
        thread.start()
        return thread

    def _monitor(self, sources: list) -> None:
        try:
            self.debouncer.start(sources)
        except Exception as exc:  # noqa: BLE001 - background unit of work
            logger.exception("Error starting acquisition monitoring: %s", exc)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop monitoring and flush pending acquisitions.

        Waits up to `timeout` for a monitoring start still in progress; stopping
        is advisory and does not interrupt a scan.
        """
        thread = self._monitor_thread
        if thread is not None and thread.is_alive():
            thread.join(timeout)
        self.debouncer.stop()
        logger.info("Export service shut down")
