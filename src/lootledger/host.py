"""Interfaces to the host game.

The exporter never reaches into the game directly. The host supplies objects
that satisfy these protocols: an item master collection for the catalog side,
and a main-thread executor for operations that must run on the host's
rendering thread.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable, Deque, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar

from .imaging import IconHandle

T = TypeVar("T")


class ItemDefinition(Protocol):
    """Read-only view of one item definition in the host's item master collection."""

    item_id: int
    display_name_key: str
    display_name: str
    description_key: str
    description: str
    short_description: str
    order: int
    max_stack_count: int
    stackable: bool
    value: int
    quality: int
    display_quality: str
    weight: float
    tags: Sequence[str]
    stats: Mapping[str, float]
    use_durability: bool
    max_durability: float
    use_time: float
    can_be_sold: bool
    can_drop: bool
    sound_key: Optional[str]
    icon: Optional[IconHandle]


class ItemEntry(Protocol):
    """An entry in the item master collection. `definition` is None for unresolved entries."""

    definition: Optional[ItemDefinition]


class ItemCollection(Protocol):
    """Bounded, non-streaming item master collection."""

    def is_ready(self) -> bool:
        """Return True once the host has finished loading the collection."""

    def entries(self) -> Sequence[ItemEntry]:
        """Return every entry; called once per scan."""


class MainThreadExecutor(ABC):
    """Runs callables on the thread the host requires for rendering work."""

    @abstractmethod
    def call(self, fn: Callable[..., T], *args: Any) -> T:
        """Run `fn(*args)` on the host thread and return its result.

        Blocks the calling thread until the host has run the callable.
        Exceptions raised by `fn` are re-raised in the caller.
        """
        raise NotImplementedError


class InlineExecutor(MainThreadExecutor):
    """Executor for headless hosts and tests: runs callables on the calling thread."""

    def call(self, fn: Callable[..., T], *args: Any) -> T:
        return fn(*args)


class QueuedMainThreadExecutor(MainThreadExecutor):
    """Hop onto the host thread by queueing work the host drains once per frame.

    Construct on the host thread. Worker threads call `call()`, which suspends
    until the host's next `run_pending()`; calls made on the host thread itself
    run inline.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._lock = threading.RLock()
        self._queue: Deque[Tuple[Callable[..., Any], Tuple[Any, ...], Future]] = deque()
        self._owner = threading.get_ident()
        self._timeout = timeout

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return bool(self._queue)

    def call(self, fn: Callable[..., T], *args: Any) -> T:
        if threading.get_ident() == self._owner:
            return fn(*args)
        future: Future = Future()
        with self._lock:
            self._queue.append((fn, args, future))
        return future.result(timeout=self._timeout)

    def run_pending(self) -> int:
        """Run every queued callable; call from the host thread. Returns how many ran."""
        with self._lock:
            work = list(self._queue)
            self._queue.clear()
        for fn, args, future in work:
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(fn(*args))
            except BaseException as exc:  # noqa: BLE001 - handed back to the waiting worker
                future.set_exception(exc)
        return len(work)

