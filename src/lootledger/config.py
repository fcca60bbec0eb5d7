from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from platformdirs import user_data_dir

from .errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "LootLedger"

# Environment variable overrides (useful for tests and hosts that relocate data)
ENV_DATA_DIR = "LOOTLEDGER_DATA_DIR"
ENV_CONFIG_FILE = "LOOTLEDGER_CONFIG"


def default_data_root() -> Path:
    """Return the per-installation data root.

    Honours LOOTLEDGER_DATA_DIR, otherwise uses the platform user data dir,
    e.g. ~/.local/share/LootLedger/Data on Linux.
    """
    override = os.getenv(ENV_DATA_DIR)
    if override:
        return Path(override).expanduser().resolve()
    return Path(user_data_dir(appname=APP_NAME, appauthor=False)) / "Data"


@dataclass
class ExporterConfig:
    """
    Exporter configuration with sensible defaults.

    Override by providing a YAML file with any of these keys:
      - data_root: str (default: platform user data dir)
      - debounce_ms: int (default 300)
      - weight_tolerance: float (default 0.01)
      - stat_tolerance: float (default 0.01)
      - provision_shards: bool (default True)
      - ready_poll_interval: float seconds (default 0.1)
      - ready_timeout: float seconds (default 30.0)
      - description_language: str (default "default")
      - log_level: str (default "INFO")
    """

    data_root: Path = dataclasses.field(default_factory=default_data_root)
    debounce_ms: int = 300
    weight_tolerance: float = 0.01
    stat_tolerance: float = 0.01
    provision_shards: bool = True
    ready_poll_interval: float = 0.1
    ready_timeout: float = 30.0
    description_language: str = "default"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.data_root = Path(self.data_root).expanduser()
        if not isinstance(self.debounce_ms, int) or self.debounce_ms <= 0:
            raise ConfigError("debounce_ms must be a positive integer")
        if self.weight_tolerance < 0 or self.stat_tolerance < 0:
            raise ConfigError("tolerances must not be negative")
        if self.ready_poll_interval <= 0:
            raise ConfigError("ready_poll_interval must be positive")
        if not self.description_language:
            raise ConfigError("description_language must be a non-empty string")

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExporterConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", unknown)
        kwargs = {k: v for k, v in data.items() if k in known}
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid exporter config: {e}") from e

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ExporterConfig":
        """Load configuration from YAML, falling back to defaults.

        The file is taken from `path`, else from LOOTLEDGER_CONFIG. A missing
        file is not an error; a malformed one is.
        """
        if path is None:
            env_path = os.getenv(ENV_CONFIG_FILE)
            path = Path(env_path) if env_path else None
        data: Dict[str, Any] = {}
        if path is not None and Path(path).exists():
            try:
                loaded = cls._load_yaml(Path(path))
            except yaml.YAMLError as e:
                raise ConfigError(f"Malformed config file {path}: {e}") from e
            if not isinstance(loaded, dict):
                raise ConfigError(f"Config file {path} must contain a mapping")
            data = loaded
            logger.info("Loaded exporter config from %s", path)
        elif path is not None:
            logger.debug("Config file %s not found; using defaults", path)
        return cls.from_dict(data)
