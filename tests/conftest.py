import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from lootledger.acquisition.scheduler import SingleShotScheduler  # noqa: E402
from lootledger.errors import ImageUnavailable  # noqa: E402
from lootledger.imaging import PixelRegion  # noqa: E402
from lootledger.storage.paths import DataLayout  # noqa: E402


class ManualScheduler(SingleShotScheduler):
    """Scheduler driven by the test: nothing fires until `fire()` is called."""

    def __init__(self) -> None:
        self.callback: Optional[Callable[[], None]] = None
        self.arm_count = 0
        self.delays: List[float] = []

    @property
    def pending(self) -> bool:
        return self.callback is not None

    def arm(self, delay: float, callback: Callable[[], None]) -> bool:
        if self.callback is not None:
            return False
        self.arm_count += 1
        self.delays.append(delay)
        self.callback = callback
        return True

    def cancel(self) -> bool:
        had = self.callback is not None
        self.callback = None
        return had

    def fire(self) -> None:
        callback, self.callback = self.callback, None
        assert callback is not None, "scheduler was not armed"
        callback()


class FakeClock:
    """Deterministic UTC clock; advances one second per call unless frozen."""

    def __init__(self, start: Optional[datetime] = None, step: float = 1.0) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            current = self.now
            self.now = self.now + self.step
            return current


class SolidIcon:
    """Icon whose pixels are a single RGBA colour."""

    def __init__(self, width: int = 2, height: int = 2, color: bytes = b"\xff\x00\x00\xff") -> None:
        self.width = width
        self.height = height
        self.color = color
        self.reads = 0

    def read_region(self) -> Optional[PixelRegion]:
        self.reads += 1
        return PixelRegion(self.width, self.height, self.color * (self.width * self.height))


class UnreadableIcon:
    def read_region(self) -> Optional[PixelRegion]:
        raise ImageUnavailable("texture is not readable")


@dataclass
class FakeItemDefinition:
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
    display_quality: str = "White"
    weight: float = 0.0
    tags: List[str] = field(default_factory=list)
    stats: Dict[str, float] = field(default_factory=dict)
    use_durability: bool = False
    max_durability: float = 0.0
    use_time: float = 0.0
    can_be_sold: bool = True
    can_drop: bool = True
    sound_key: Optional[str] = None
    icon: object = None


@dataclass
class FakeEntry:
    definition: Optional[FakeItemDefinition]


class FakeCollection:
    def __init__(self, entries: Optional[List[FakeEntry]] = None, ready: bool = True) -> None:
        self._entries = list(entries or [])
        self.ready = ready

    def is_ready(self) -> bool:
        return self.ready

    def entries(self) -> List[FakeEntry]:
        return list(self._entries)


def make_definition(item_id: int, **overrides) -> FakeItemDefinition:
    defaults = dict(
        display_name_key=f"Item_{item_id}",
        display_name=f"Item {item_id}",
        description_key=f"Item_{item_id}_Desc",
        description=f"Description of item {item_id}",
        value=10,
        quality=1,
        max_stack_count=10,
        stackable=True,
        weight=0.5,
        tags=["Tool"],
        stats={"Damage": 5.0},
    )
    defaults.update(overrides)
    return FakeItemDefinition(item_id=item_id, **defaults)


@pytest.fixture
def layout(tmp_path) -> DataLayout:
    return DataLayout(tmp_path / "Data")


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def definition_factory() -> Callable[..., FakeItemDefinition]:
    return make_definition


@pytest.fixture
def collection_factory() -> Callable[..., FakeCollection]:
    def build(definitions, ready: bool = True, unresolved: int = 0) -> FakeCollection:
        entries = [FakeEntry(d) for d in definitions] + [FakeEntry(None) for _ in range(unresolved)]
        return FakeCollection(entries, ready=ready)

    return build


@pytest.fixture
def solid_icon() -> SolidIcon:
    return SolidIcon()


@pytest.fixture
def unreadable_icon() -> UnreadableIcon:
    return UnreadableIcon()
