from .snapshot import ItemSnapshot, build_snapshot
from .detector import ChangeDetector, ChangeResult
from .scanner import CatalogScanner, ScanSummary

__all__ = [
    "ItemSnapshot",
    "build_snapshot",
    "ChangeDetector",
    "ChangeResult",
    "CatalogScanner",
    "ScanSummary",
]
