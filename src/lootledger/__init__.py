"""
Loot Ledger: exports a game's item catalog and acquisition history to disk.

Two independent sides share one data root:
- Catalog: CatalogScanner walks the item master collection once, and
  ChangeDetector decides which items CatalogStore must rewrite
- Acquisition: AcquisitionDebouncer coalesces inventory notifications into
  batches that HistoryLog writes as time-sharded, append-only files

Hosts compose both through ExportService.
"""
from importlib.metadata import PackageNotFoundError, version

from .acquisition import AcquisitionDebouncer, InMemoryInventory, InventoryEventSource, Stack, TimerScheduler
from .catalog import CatalogScanner, ChangeDetector, ScanSummary
from .config import ExporterConfig
from .errors import (
    CatalogWriteError,
    ConfigError,
    HistoryWriteError,
    ImageUnavailable,
    LedgerError,
    RecordValidationError,
    StorageError,
)
from .host import InlineExecutor, MainThreadExecutor, QueuedMainThreadExecutor
from .imaging import ImageEncoder, PillowPngEncoder, PixelRegion
from .logging_config import configure_logging
from .service import ExportService
from .slots import StaticSlotProvider, resolve_save_slot
from .storage import AcquisitionBatch, CatalogStore, DataLayout, HistoryLog, ItemRecord, shard_digit

try:
    __version__ = version("loot-ledger")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "AcquisitionDebouncer",
    "InMemoryInventory",
    "InventoryEventSource",
    "Stack",
    "TimerScheduler",
    "CatalogScanner",
    "ChangeDetector",
    "ScanSummary",
    "ExporterConfig",
    "CatalogWriteError",
    "ConfigError",
    "HistoryWriteError",
    "ImageUnavailable",
    "LedgerError",
    "RecordValidationError",
    "StorageError",
    "InlineExecutor",
    "MainThreadExecutor",
    "QueuedMainThreadExecutor",
    "ImageEncoder",
    "PillowPngEncoder",
    "PixelRegion",
    "configure_logging",
    "ExportService",
    "StaticSlotProvider",
    "resolve_save_slot",
    "AcquisitionBatch",
    "CatalogStore",
    "DataLayout",
    "HistoryLog",
    "ItemRecord",
    "shard_digit",
]
