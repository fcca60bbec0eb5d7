from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from ..host import ItemDefinition
from ..storage.models import DescriptionContent, DescriptionRecord, ItemRecord


@dataclass(frozen=True)
class ItemSnapshot:
    """Freshly observed state of one item definition, detached from the host object."""

    item_id: int
    display_name_key: str = ""
    display_name: str = ""
    description_key: str = ""
    description: str = ""
    short_description: str = ""
    order: int = 0
    max_stack_count: int = 1
    stackable: bool = False
    value: int = 0
    quality: int = 0
    display_quality: str = ""
    weight: float = 0.0
    tags: FrozenSet[str] = frozenset()
    stats: Dict[str, float] = field(default_factory=dict)
    use_durability: bool = False
    max_durability: float = 0.0
    use_time: float = 0.0
    can_be_sold: bool = True
    can_drop: bool = True
    sound_key: str = "default"

    def to_record(self, first_seen_at: datetime, last_updated_at: datetime) -> ItemRecord:
        return ItemRecord(
            id=self.item_id,
            type_id=self.item_id,
            display_name_key=self.display_name_key,
            display_name_raw=self.display_name,
            description_key=self.description_key,
            order=self.order,
            max_stack_count=self.max_stack_count,
            stackable=self.stackable,
            value=self.value,
            quality=self.quality,
            display_quality=self.display_quality,
            weight=self.weight,
            tags=sorted(self.tags),
            stats=dict(self.stats),
            use_durability=self.use_durability,
            max_durability=self.max_durability,
            use_time=self.use_time,
            can_be_sold=self.can_be_sold,
            can_drop=self.can_drop,
            sound_key=self.sound_key,
            first_seen_at=first_seen_at,
            last_updated_at=last_updated_at,
        )

    def to_description(self, language: str = "default") -> DescriptionRecord:
        content = DescriptionContent(
            name=self.display_name,
            short_description=self.short_description,
            full_description=self.description,
        )
        return DescriptionRecord(languages={language: content})


def _text(value: Optional[str]) -> str:
    return value or ""


def build_snapshot(definition: ItemDefinition) -> ItemSnapshot:
    """Copy the exportable fields out of a host item definition.

    Empty tag names and stat keys are dropped.
    """
    tags = frozenset(t for t in (definition.tags or ()) if t)
    stats = {str(k): float(v) for k, v in (definition.stats or {}).items() if k}
    return ItemSnapshot(
        item_id=int(definition.item_id),
        display_name_key=_text(definition.display_name_key),
        display_name=_text(definition.display_name),
        description_key=_text(definition.description_key),
        description=_text(definition.description),
        short_description=_text(getattr(definition, "short_description", "")),
        order=int(definition.order),
        max_stack_count=int(definition.max_stack_count),
        stackable=bool(definition.stackable),
        value=int(definition.value),
        quality=int(definition.quality),
        display_quality="" if definition.display_quality is None else str(definition.display_quality),
        weight=float(definition.weight),
        tags=tags,
        stats=stats,
        use_durability=bool(definition.use_durability),
        max_durability=float(definition.max_durability),
        use_time=float(definition.use_time),
        can_be_sold=bool(definition.can_be_sold),
        can_drop=bool(definition.can_drop),
        sound_key=definition.sound_key or "default",
    )
