from __future__ import annotations

import json
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import RecordValidationError
from .models import SCHEMA_VERSION

M = TypeVar("M", bound=BaseModel)


def encode_record(record: BaseModel) -> str:
    """Encode a record to compact JSON with camelCase keys; None values are omitted."""
    data = record.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def decode_record(text: str, model: Type[M]) -> M:
    """Decode JSON text into `model` with version validation and migration hooks.

    Raises:
        RecordValidationError: on invalid JSON, unsupported version or schema mismatch.
    """
    try:
        data: Dict[str, Any] = json.loads(text)
    except json.JSONDecodeError as e:
        raise RecordValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise RecordValidationError("Record must be a JSON object")

    version = str(data.get("version", SCHEMA_VERSION))
    if version != SCHEMA_VERSION:
        data = migrate_data(data, from_version=version, to_version=SCHEMA_VERSION)

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RecordValidationError(f"Invalid {model.__name__}: {e}") from e


def _major(version: str) -> int:
    try:
        return int(version.split(".", 1)[0])
    except ValueError as e:
        raise RecordValidationError(f"Unparseable schema version {version!r}") from e


def migrate_data(data: Dict[str, Any], from_version: str, to_version: str) -> Dict[str, Any]:
    """Migrate data between schema versions.

    Minor and patch bumps are additive and read as-is. No major migrations
    exist yet, so anything from a newer major is rejected.
    """
    if _major(from_version) > _major(to_version):
        raise RecordValidationError(
            f"Record schema version {from_version} is newer than supported {to_version}."
        )
    if _major(from_version) < _major(to_version):
        raise RecordValidationError(f"No migration from schema version {from_version} to {to_version}.")
    data["version"] = to_version
    return data
