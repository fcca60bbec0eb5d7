import logging
import threading

from lootledger.catalog.scanner import CatalogScanner
from lootledger.slots import StaticSlotProvider
from lootledger.storage.catalog_store import CatalogStore
from conftest import SolidIcon, make_definition


class ExplodingStore(CatalogStore):
    """Store whose put fails for one item id."""

    def __init__(self, layout, bad_id):
        super().__init__(layout)
        self.bad_id = bad_id
        self.puts = []

    def put(self, save_slot, item_id, record, description=None, icon=None):
        self.puts.append(item_id)
        if item_id == self.bad_id:
            raise RuntimeError("disk on fire")
        return super().put(save_slot, item_id, record, description=description, icon=icon)


def test_first_scan_exports_every_resolved_item(layout, collection_factory, clock):
    definitions = [make_definition(i) for i in (1001, 1002, 1003)]
    definitions[0].icon = SolidIcon()
    scanner = CatalogScanner(collection_factory(definitions, unresolved=2), CatalogStore(layout), clock=clock)

    summary = scanner.scan(save_slot=1)

    assert summary.total == 3
    assert summary.unresolved == 2
    assert summary.exported == 3
    assert summary.skipped == 0
    assert summary.errors == 0
    assert summary.images_exported == 1
    assert summary.images_skipped == 2
    for item_id in (1001, 1002, 1003):
        assert layout.metadata_path(1, item_id).exists()
        assert layout.description_path(1, item_id).exists()
        assert scanner.is_cataloged(item_id, 1)
    assert scanner.last_summary is summary


def test_second_scan_of_unchanged_catalog_writes_nothing(layout, collection_factory, clock):
    collection = collection_factory([make_definition(1001), make_definition(1002)])
    scanner = CatalogScanner(collection, CatalogStore(layout), clock=clock)
    scanner.scan(save_slot=1)
    before = layout.metadata_path(1, 1001).stat().st_mtime_ns

    summary = scanner.scan(save_slot=1)

    assert summary.exported == 0
    assert summary.skipped == 2
    assert layout.metadata_path(1, 1001).stat().st_mtime_ns == before


def test_changed_item_keeps_first_seen(layout, collection_factory, clock):
    definition = make_definition(1001)
    store = CatalogStore(layout)
    scanner = CatalogScanner(collection_factory([definition]), store, clock=clock)
    scanner.scan(save_slot=1)
    first = store.get(1, 1001)

    definition.value = 500
    summary = scanner.scan(save_slot=1)

    updated = store.get(1, 1001)
    assert summary.exported == 1
    assert updated.value == 500
    assert updated.first_seen_at == first.first_seen_at
    assert updated.last_updated_at > first.last_updated_at


def test_failing_item_does_not_abort_the_pass(layout, collection_factory, clock, caplog):
    ids = [1001, 1002, 1003, 1004]
    store = ExplodingStore(layout, bad_id=1002)
    scanner = CatalogScanner(collection_factory([make_definition(i) for i in ids]), store, clock=clock)

    with caplog.at_level(logging.ERROR):
        summary = scanner.scan(save_slot=1)

    assert store.puts == ids
    assert summary.errors == 1
    assert summary.exported == 3
    assert not scanner.is_cataloged(1002, 1)
    assert scanner.is_cataloged(1004, 1)
    assert any("1002" in r.getMessage() for r in caplog.records)


def test_malformed_stored_record_is_re_exported(layout, collection_factory, clock):
    scanner = CatalogScanner(collection_factory([make_definition(1001)]), CatalogStore(layout), clock=clock)
    scanner.scan(save_slot=1)
    layout.metadata_path(1, 1001).write_text("garbage", encoding="utf-8")

    assert scanner.scan(save_slot=1).exported == 1


def test_scan_uses_slot_provider(layout, collection_factory, clock):
    scanner = CatalogScanner(
        collection_factory([make_definition(1001)]),
        CatalogStore(layout),
        slot_provider=StaticSlotProvider(4),
        clock=clock,
    )
    assert scanner.scan().save_slot == 4
    assert layout.metadata_path(4, 1001).exists()


def test_failing_slot_provider_falls_back_to_slot_one(layout, collection_factory, clock):
    def broken_provider():
        raise RuntimeError("save system not loaded")

    scanner = CatalogScanner(
        collection_factory([make_definition(1001)]), CatalogStore(layout), slot_provider=broken_provider, clock=clock
    )
    assert scanner.scan().save_slot == 1


def test_start_waits_for_collection(layout, collection_factory, clock):
    collection = collection_factory([make_definition(1001)], ready=False)
    scanner = CatalogScanner(collection, CatalogStore(layout), clock=clock, ready_poll_interval=0.01, ready_timeout=5.0)

    thread = scanner.start(save_slot=1)
    assert isinstance(thread, threading.Thread)
    assert not layout.metadata_path(1, 1001).exists()
    collection.ready = True
    thread.join(timeout=5.0)

    assert not thread.is_alive()
    assert layout.metadata_path(1, 1001).exists()


def test_start_gives_up_when_collection_never_ready(layout, collection_factory, clock):
    collection = collection_factory([make_definition(1001)], ready=False)
    scanner = CatalogScanner(collection, CatalogStore(layout), clock=clock, ready_poll_interval=0.01, ready_timeout=0.05)

    scanner.start(save_slot=1).join(timeout=5.0)

    assert scanner.last_summary is None
    assert not layout.metadata_path(1, 1001).exists()
