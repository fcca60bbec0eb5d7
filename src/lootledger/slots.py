from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, Union

logger = logging.getLogger(__name__)

DEFAULT_SAVE_SLOT = 1


class SaveSlotProvider(Protocol):
    """Reports the host's active save slot."""

    def current_slot(self) -> int:
        ...


class StaticSlotProvider:
    """Provider that always answers the same slot (headless hosts, tests)."""

    def __init__(self, slot: int = DEFAULT_SAVE_SLOT) -> None:
        self.slot = slot

    def current_slot(self) -> int:
        return self.slot


def resolve_save_slot(
    provider: Optional[Union[SaveSlotProvider, Callable[[], int]]],
    default: int = DEFAULT_SAVE_SLOT,
) -> int:
    """Return the active save slot, falling back to `default` when resolution fails.

    Failures are logged, never raised.
    """
    if provider is None:
        return default
    try:
        if callable(provider) and not hasattr(provider, "current_slot"):
            slot = provider()
        else:
            slot = provider.current_slot()  # type: ignore[union-attr]
        return int(slot)
    except Exception as exc:  # noqa: BLE001 - host slot lookup may fail in many ways
        logger.error("Failed to get current save slot: %s; using slot %s", exc, default)
        return default
