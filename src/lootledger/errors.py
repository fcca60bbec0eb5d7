class LedgerError(Exception):
    """Base error for Loot Ledger exceptions."""


class ConfigError(LedgerError):
    """Raised when exporter configuration is invalid."""


class StorageError(LedgerError):
    """Base exception for file tree read/write errors."""


class CatalogWriteError(StorageError):
    """Raised when an item record, description or icon cannot be written."""


class HistoryWriteError(StorageError):
    """Raised when an acquisition batch cannot be written."""


class RecordValidationError(StorageError):
    """Raised when an on-disk record is malformed or has an unsupported schema version."""


class ImageUnavailable(LedgerError):
    """Raised when an icon's source pixels cannot be read (not an error condition for scans)."""
