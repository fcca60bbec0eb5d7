import threading

from lootledger.slots import DEFAULT_SAVE_SLOT, StaticSlotProvider, resolve_save_slot
from lootledger.utils.polling import wait_until


def test_resolve_defaults_without_provider():
    assert resolve_save_slot(None) == DEFAULT_SAVE_SLOT == 1


def test_resolve_from_provider_object_and_callable():
    assert resolve_save_slot(StaticSlotProvider(3)) == 3
    assert resolve_save_slot(lambda: "2") == 2


def test_resolve_falls_back_when_provider_fails(caplog):
    def broken():
        raise RuntimeError("no save loaded")

    assert resolve_save_slot(broken) == 1
    assert any("no save loaded" in r.getMessage() for r in caplog.records)


def test_wait_until_true_immediately():
    assert wait_until(lambda: True, poll_interval=0.01, timeout=0.0)


def test_wait_until_times_out():
    assert not wait_until(lambda: False, poll_interval=0.01, timeout=0.05)


def test_wait_until_treats_exceptions_as_not_ready():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise AttributeError("host object not constructed")
        return True

    assert wait_until(flaky, poll_interval=0.001, timeout=5.0)
    assert len(calls) == 3


def test_wait_until_stops_on_event():
    stop = threading.Event()
    stop.set()
    assert not wait_until(lambda: False, poll_interval=0.01, timeout=None, stop_event=stop)
