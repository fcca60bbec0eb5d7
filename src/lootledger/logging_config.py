import logging
import os
from typing import Optional, Union

ENV_LOG_LEVEL = "LOOTLEDGER_LOG_LEVEL"
PACKAGE_LOGGER = "lootledger"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def resolve_level(value: Union[str, int, None], default: int = logging.INFO) -> int:
    """Turn a level name or number into a logging level; unknown names give `default`."""
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    return level if isinstance(level, int) else default


def configure_logging(level: Union[str, int, None] = None, default_level: int = logging.INFO) -> int:
    """Install the exporter's log format on the root logger and set the package level.

    An explicit `level` wins over LOOTLEDGER_LOG_LEVEL, which wins over
    `default_level`. Hosts that already configured logging keep their handlers.
    Returns the level applied to the 'lootledger' logger.
    """
    env_level: Optional[str] = os.getenv(ENV_LOG_LEVEL)
    resolved = resolve_level(level if level is not None else env_level, default_level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved)
    return resolved
