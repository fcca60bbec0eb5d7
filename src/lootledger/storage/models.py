from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Bump the major component on breaking schema changes
SCHEMA_VERSION = "1.0.0"

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def to_utc(value: datetime) -> datetime:
    """Normalise to an aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Current UTC time at the one-second resolution the file tree stores."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    return to_utc(value).strftime(TIMESTAMP_FORMAT)


class _Record(BaseModel):
    """Base for JSON documents in the exported tree: camelCase keys, UTC second timestamps."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    version: str = Field(SCHEMA_VERSION, description="Schema version of the document")


class ItemRecord(_Record):
    """Catalog entry persisted as metadata.json, one per (save slot, item id)."""

    id: int
    type_id: Optional[int] = Field(default=None, alias="typeID")
    display_name_key: str = ""
    display_name_raw: str = ""
    description_key: str = ""
    order: int = 0
    max_stack_count: int = 1
    stackable: bool = False
    value: int = 0
    quality: int = 0
    display_quality: str = ""
    weight: float = 0.0
    tags: List[str] = Field(default_factory=list)
    stats: Dict[str, float] = Field(default_factory=dict)
    slots: List[Any] = Field(default_factory=list)
    modifiers: List[Any] = Field(default_factory=list)
    use_durability: bool = False
    max_durability: float = 0.0
    use_time: float = 0.0
    can_be_sold: bool = True
    can_drop: bool = True
    sound_key: str = "default"
    first_seen_at: datetime
    last_updated_at: datetime

    @model_validator(mode="after")
    def _default_type_id(self) -> "ItemRecord":
        if self.type_id is None:
            self.type_id = self.id
        return self

    @model_validator(mode="after")
    def _timestamps_in_order(self) -> "ItemRecord":
        if self.last_updated_at < self.first_seen_at:
            raise ValueError("lastUpdatedAt must not precede firstSeenAt")
        return self

    @field_validator("first_seen_at", "last_updated_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return to_utc(v).replace(microsecond=0)

    @field_serializer("first_seen_at", "last_updated_at")
    def _format_ts(self, v: datetime) -> str:
        return format_timestamp(v)


class DescriptionContent(BaseModel):
    """Localised text for one language."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: str = ""
    short_description: str = ""
    full_description: str = ""


class DescriptionRecord(_Record):
    """description.json: language key -> localised text."""

    languages: Dict[str, DescriptionContent] = Field(default_factory=dict)


class AcquisitionBatch(_Record):
    """One flushed, de-duplicated set of acquisitions; persisted as an immutable history file.

    `quantities[i]` is the amount acquired of `items[i]`.
    """

    timestamp: datetime = Field(default_factory=utcnow)
    items: List[int] = Field(default_factory=list)
    quantities: List[int] = Field(default_factory=list)

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return to_utc(v).replace(microsecond=0)

    @model_validator(mode="after")
    def _aligned(self) -> "AcquisitionBatch":
        if len(self.items) != len(self.quantities):
            raise ValueError(
                f"items and quantities must be index-aligned ({len(self.items)} != {len(self.quantities)})"
            )
        return self

    @field_serializer("timestamp")
    def _format_ts(self, v: datetime) -> str:
        return format_timestamp(v)
