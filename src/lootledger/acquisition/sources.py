from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol


class ItemStack(Protocol):
    """A stack of one item type occupying an inventory slot."""

    item_id: int
    display_name: str
    stack_count: int


ContentChangedCallback = Callable[["InventoryEventSource", int], None]


class InventoryEventSource(ABC):
    """An inventory that reports "content changed at index" notifications.

    Hosts adapt each independent inventory (character bag, storage box, ...)
    to this interface and hand the adapters to the acquisition debouncer.
    """

    #: Source tag recorded with every acquisition from this inventory
    name: str = "inventory"

    def is_ready(self) -> bool:
        """Return False while the host object behind this source is still loading."""
        return True

    @abstractmethod
    def subscribe(self, callback: ContentChangedCallback) -> None:
        raise NotImplementedError

    @abstractmethod
    def unsubscribe(self, callback: ContentChangedCallback) -> None:
        raise NotImplementedError

    @abstractmethod
    def item_at(self, index: int) -> Optional[ItemStack]:
        """Stack at `index`, or None if the slot is empty."""
        raise NotImplementedError

    @abstractmethod
    def stacks(self) -> Iterable[ItemStack]:
        """Every stack currently present."""
        raise NotImplementedError


@dataclass(frozen=True)
class Stack:
    """Plain ItemStack value."""

    item_id: int
    stack_count: int = 1
    display_name: str = ""


class InMemoryInventory(InventoryEventSource):
    """Slot-indexed inventory held in memory.

    Useful for hosts that mirror their inventories into Python objects, and
    for tests. Callbacks run on the thread that mutates the inventory, outside
    the internal lock.
    """

    def __init__(self, name: str = "inventory", ready: bool = True) -> None:
        self.name = name
        self._lock = threading.RLock()
        self._slots: Dict[int, Stack] = {}
        self._callbacks: List[ContentChangedCallback] = []
        self._ready = ready

    def is_ready(self) -> bool:
        return self._ready

    def mark_ready(self) -> None:
        self._ready = True

    def subscribe(self, callback: ContentChangedCallback) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def unsubscribe(self, callback: ContentChangedCallback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def item_at(self, index: int) -> Optional[Stack]:
        with self._lock:
            return self._slots.get(index)

    def stacks(self) -> List[Stack]:
        with self._lock:
            return [self._slots[i] for i in sorted(self._slots)]

    def set_slot(self, index: int, stack: Optional[Stack]) -> None:
        """Place (or with None, clear) a stack and notify subscribers."""
        with self._lock:
            if stack is None:
                self._slots.pop(index, None)
            else:
                self._slots[index] = stack
        self._notify(index)

    def add(self, stack: Stack) -> int:
        """Put `stack` in the first empty slot and return its index."""
        with self._lock:
            index = 0
            while index in self._slots:
                index += 1
            self._slots[index] = stack
        self._notify(index)
        return index

    def _notify(self, index: int) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for cb in callbacks:
            cb(self, index)
