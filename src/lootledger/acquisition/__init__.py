from .events import AcquisitionEvent, GroupedAcquisition, build_batch, group_events
from .scheduler import SingleShotScheduler, TimerScheduler
from .sources import InMemoryInventory, InventoryEventSource, ItemStack, Stack
from .debouncer import IDLE, PENDING, AcquisitionDebouncer

__all__ = [
    "AcquisitionEvent",
    "GroupedAcquisition",
    "build_batch",
    "group_events",
    "SingleShotScheduler",
    "TimerScheduler",
    "InMemoryInventory",
    "InventoryEventSource",
    "ItemStack",
    "Stack",
    "IDLE",
    "PENDING",
    "AcquisitionDebouncer",
]
