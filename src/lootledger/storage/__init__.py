"""File tree storage for the exporter.

- paths: pure mapping from (slot, item id) / (slot, timestamp) to locations
- models: pydantic schemas of the JSON documents
- codec: JSON encoding with schema version checks
- CatalogStore: per-item records with icon export
- HistoryLog: append-only time-sharded acquisition batches
"""

from .models import (
    SCHEMA_VERSION,
    AcquisitionBatch,
    DescriptionContent,
    DescriptionRecord,
    ItemRecord,
)
from .paths import DataLayout, catalog_dir, history_file, shard_digit
from .catalog_store import CatalogStore
from .history_log import HistoryLog

__all__ = [
    "SCHEMA_VERSION",
    "AcquisitionBatch",
    "DescriptionContent",
    "DescriptionRecord",
    "ItemRecord",
    "DataLayout",
    "catalog_dir",
    "history_file",
    "shard_digit",
    "CatalogStore",
    "HistoryLog",
]
