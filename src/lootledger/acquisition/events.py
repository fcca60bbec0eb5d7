from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List

from ..storage.models import AcquisitionBatch


@dataclass(frozen=True)
class AcquisitionEvent:
    """One inventory notification turned into an acquisition. Never persisted on its own."""

    item_id: int
    quantity: int
    display_name: str
    source: str
    timestamp: datetime
    save_slot: int
    is_new: bool = False


@dataclass
class GroupedAcquisition:
    """All events for one item id within a flush."""

    item_id: int
    quantity: int
    display_name: str
    source: str
    is_new: bool
    event_count: int = 1


def group_events(events: Iterable[AcquisitionEvent]) -> List[GroupedAcquisition]:
    """Group events by item id in first-occurrence order.

    Quantities are summed; name and source come from the first event of the
    group; the group is new if any of its events was.
    """
    groups: Dict[int, GroupedAcquisition] = {}
    for ev in events:
        group = groups.get(ev.item_id)
        if group is None:
            groups[ev.item_id] = GroupedAcquisition(
                item_id=ev.item_id,
                quantity=ev.quantity,
                display_name=ev.display_name,
                source=ev.source,
                is_new=ev.is_new,
            )
            continue
        group.quantity += ev.quantity
        group.is_new = group.is_new or ev.is_new
        group.event_count += 1
    return list(groups.values())


def build_batch(groups: List[GroupedAcquisition], timestamp: datetime) -> AcquisitionBatch:
    return AcquisitionBatch(
        timestamp=timestamp,
        items=[g.item_id for g in groups],
        quantities=[g.quantity for g in groups],
    )
