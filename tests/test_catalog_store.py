import json
from datetime import datetime, timezone

import pytest

from lootledger.errors import CatalogWriteError
from lootledger.imaging import ImageEncoder, PillowPngEncoder, PixelRegion
from lootledger.storage.catalog_store import CatalogStore
from lootledger.storage.models import DescriptionContent, DescriptionRecord, ItemRecord
from lootledger.storage.paths import DataLayout

T0 = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _record(item_id: int = 1001) -> ItemRecord:
    return ItemRecord(id=item_id, display_name_raw="Pickaxe", first_seen_at=T0, last_updated_at=T0)


def _description() -> DescriptionRecord:
    return DescriptionRecord(languages={"default": DescriptionContent(name="Pickaxe", full_description="Digs.")})


def test_get_missing_returns_none(layout):
    assert CatalogStore(layout).get(1, 1001) is None


def test_put_then_get(layout):
    store = CatalogStore(layout)
    assert store.put(1, 1001, _record(), description=_description()) is False

    assert store.get(1, 1001) == _record()
    desc = json.loads(layout.description_path(1, 1001).read_text(encoding="utf-8"))
    assert desc["languages"]["default"]["fullDescription"] == "Digs."
    assert not layout.icon_path(1, 1001).exists()


def test_saves_are_isolated_per_slot(layout):
    store = CatalogStore(layout)
    store.put(1, 1001, _record())
    assert store.get(2, 1001) is None


def test_put_overwrites_wholesale(layout):
    store = CatalogStore(layout)
    store.put(1, 1001, _record())
    updated = _record().model_copy(update={"value": 99})
    store.put(1, 1001, updated)
    assert store.get(1, 1001).value == 99


def test_malformed_metadata_reads_as_missing(layout, caplog):
    path = layout.metadata_path(1, 1001)
    path.parent.mkdir(parents=True)
    path.write_text("{ not json", encoding="utf-8")

    assert CatalogStore(layout).get(1, 1001) is None
    assert any("Malformed metadata" in r.getMessage() for r in caplog.records)


def test_metadata_for_other_item_reads_as_missing(layout):
    store = CatalogStore(layout)
    store.put(1, 1001, _record())
    layout.metadata_path(1, 2002).parent.mkdir(parents=True)
    layout.metadata_path(1, 2002).write_text(layout.metadata_path(1, 1001).read_text(encoding="utf-8"), encoding="utf-8")
    assert store.get(1, 2002) is None


def test_icon_is_exported_as_png(layout, solid_icon):
    store = CatalogStore(layout, encoder=PillowPngEncoder())
    assert store.put(1, 1001, _record(), icon=solid_icon) is True
    assert layout.icon_path(1, 1001).read_bytes().startswith(PNG_SIGNATURE)


def test_unreadable_icon_is_skipped_without_error(layout, unreadable_icon):
    store = CatalogStore(layout)
    assert store.put(1, 1001, _record(), icon=unreadable_icon) is False
    assert not layout.icon_path(1, 1001).exists()
    assert store.get(1, 1001) is not None


def test_icon_encoding_goes_through_executor(layout, solid_icon):
    calls = []

    class RecordingExecutor:
        def call(self, fn, *args):
            calls.append(fn)
            return fn(*args)

    store = CatalogStore(layout, executor=RecordingExecutor())
    store.put(1, 1001, _record(), icon=solid_icon)
    assert len(calls) == 1
    assert solid_icon.reads == 1


def test_custom_encoder(layout, solid_icon):
    class RawEncoder(ImageEncoder):
        def encode(self, region: PixelRegion) -> bytes:
            return region.pixels

    CatalogStore(layout, encoder=RawEncoder()).put(1, 1001, _record(), icon=solid_icon)
    assert layout.icon_path(1, 1001).read_bytes() == b"\xff\x00\x00\xff" * 4


def test_write_failure_raises_catalog_write_error(tmp_path):
    blocker = tmp_path / "Data"
    blocker.write_text("a file where the data root should be", encoding="utf-8")
    store = CatalogStore(DataLayout(blocker))
    with pytest.raises(CatalogWriteError):
        store.put(1, 1001, _record())
