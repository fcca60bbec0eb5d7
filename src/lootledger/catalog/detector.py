from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..storage.models import ItemRecord, to_utc, utcnow
from .snapshot import ItemSnapshot

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01


@dataclass(frozen=True)
class ChangeResult:
    """Outcome of comparing a snapshot with the stored record.

    When `changed` is False, `record` is the stored record untouched and the
    caller must not write anything.
    """

    changed: bool
    record: ItemRecord
    reason: str = ""


class ChangeDetector:
    """Decides export-or-skip for a freshly observed item.

    Fields are compared in a fixed order and the first mismatch wins; this is
    a change signal, not a full diff. Stats that disappeared from the snapshot
    are not looked for.
    """

    def __init__(
        self,
        weight_tolerance: float = DEFAULT_TOLERANCE,
        stat_tolerance: float = DEFAULT_TOLERANCE,
    ) -> None:
        self.weight_tolerance = weight_tolerance
        self.stat_tolerance = stat_tolerance

    def find_change(self, snapshot: ItemSnapshot, stored: ItemRecord) -> Optional[str]:
        """Return the name of the first differing field, or None if nothing differs."""
        if snapshot.display_name != stored.display_name_raw:
            return "displayNameRaw"
        if snapshot.value != stored.value:
            return "value"
        if snapshot.quality != stored.quality:
            return "quality"
        if snapshot.max_stack_count != stored.max_stack_count:
            return "maxStackCount"
        if abs(snapshot.weight - stored.weight) > self.weight_tolerance:
            return "weight"
        if set(snapshot.tags) != set(stored.tags):
            return "tags"
        for key, value in snapshot.stats.items():
            previous = stored.stats.get(key)
            if previous is None or abs(value - previous) > self.stat_tolerance:
                return f"stats[{key}]"
        return None

    def detect(
        self,
        snapshot: ItemSnapshot,
        stored: Optional[ItemRecord],
        now: Optional[datetime] = None,
    ) -> ChangeResult:
        now = to_utc(now or utcnow()).replace(microsecond=0)
        if stored is None:
            return ChangeResult(True, snapshot.to_record(now, now), "new")

        reason = self.find_change(snapshot, stored)
        if reason is None:
            return ChangeResult(False, stored)

        logger.debug("Item %s changed: %s", snapshot.item_id, reason)
        first_seen = stored.first_seen_at
        # lastUpdatedAt never moves backwards for a key, even if the clock does
        last_updated = max(now, stored.last_updated_at, first_seen)
        return ChangeResult(True, snapshot.to_record(first_seen, last_updated), reason)
