from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from ..slots import SaveSlotProvider, resolve_save_slot
from ..storage.history_log import HistoryLog
from ..storage.models import utcnow
from ..utils.polling import wait_until
from .events import AcquisitionEvent, build_batch, group_events
from .scheduler import SingleShotScheduler, TimerScheduler
from .sources import InventoryEventSource

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 0.3

IDLE = "idle"
PENDING = "pending"


class AcquisitionDebouncer:
    """Coalesces inventory notifications into acquisition batches.

    Idle until the first event arrives, which arms a single-shot timer for
    `window` seconds. Events arriving while Pending join the buffer without
    moving the deadline. When the timer fires the buffer is drained, grouped
    per item id and written as one history batch per save slot.

    Pending buffers and the per-slot collected sets belong to the instance and
    are guarded by one lock, which is never held across file I/O.
    """

    def __init__(
        self,
        history: HistoryLog,
        slot_provider: Optional[SaveSlotProvider] = None,
        window: float = DEFAULT_WINDOW_SECONDS,
        scheduler: Optional[SingleShotScheduler] = None,
        clock: Callable[[], datetime] = utcnow,
        ready_poll_interval: float = 0.1,
        ready_timeout: Optional[float] = 30.0,
    ) -> None:
        self.history = history
        self.slot_provider = slot_provider
        self.window = window
        self.scheduler = scheduler or TimerScheduler()
        self.clock = clock
        self.ready_poll_interval = ready_poll_interval
        self.ready_timeout = ready_timeout

        self._lock = threading.Lock()
        self._pending: Dict[int, List[AcquisitionEvent]] = {}
        self._armed = False
        self._collected: Dict[int, Set[int]] = {}
        self._sources: List[InventoryEventSource] = []
        self._initialized = False
        self._handshake_running = False

    # State inspection

    @property
    def state(self) -> str:
        with self._lock:
            return PENDING if self._armed else IDLE

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(len(events) for events in self._pending.values())

    @property
    def initialized(self) -> bool:
        with self._lock:
            return self._initialized

    def is_collected(self, item_id: int, save_slot: int) -> bool:
        with self._lock:
            return item_id in self._collected.get(save_slot, set())

    # Event intake

    def record(
        self,
        item_id: int,
        quantity: int,
        display_name: str = "",
        source: str = "",
        save_slot: Optional[int] = None,
    ) -> AcquisitionEvent:
        """Buffer one acquisition and arm the flush timer if Idle."""
        if save_slot is None:
            save_slot = resolve_save_slot(self.slot_provider)
        timestamp = self.clock()
        with self._lock:
            collected = self._collected.setdefault(save_slot, set())
            event = AcquisitionEvent(
                item_id=item_id,
                quantity=quantity,
                display_name=display_name or "",
                source=source,
                timestamp=timestamp,
                save_slot=save_slot,
                is_new=item_id not in collected,
            )
            self._pending.setdefault(save_slot, []).append(event)
            # Held back until the startup batch is on disk
            if not self._armed and not self._handshake_running:
                self._arm_locked()
        return event

    def _arm_locked(self) -> None:
        self._armed = True
        self.scheduler.arm(self.window, self._on_timer)

    def _on_content_changed(self, source: InventoryEventSource, index: int) -> None:
        try:
            stack = source.item_at(index)
            if stack is None:
                logger.debug("Item removed from %s at index %s", source.name, index)
                return
            logger.debug(
                "%s change at index %s: %s (x%s)", source.name, index, stack.display_name, stack.stack_count
            )
            self.record(stack.item_id, stack.stack_count, stack.display_name, source.name)
        except Exception as exc:  # noqa: BLE001 - runs on the host's event thread
            logger.error("Error handling %s change at index %s: %s", source.name, index, exc)

    def _on_timer(self) -> None:
        self.flush()

    # Flushing

    def flush(self) -> List[Path]:
        """Drain the buffer and write one batch per save slot; returns the files written.

        Errors are logged per batch and never raised.
        """
        with self._lock:
            drained = self._pending
            self._pending = {}
            self._armed = False
        if not drained:
            return []

        timestamp = self.clock()
        written: List[Path] = []
        for save_slot, events in drained.items():
            if not events:
                continue
            groups = group_events(events)
            try:
                batch = build_batch(groups, timestamp)
                path = self.history.append(save_slot, batch)
            except Exception as exc:  # noqa: BLE001 - a failed batch must not stop the others
                logger.error("Error flushing %d acquisitions for save slot %s: %s", len(events), save_slot, exc)
                continue
            with self._lock:
                self._collected.setdefault(save_slot, set()).update(g.item_id for g in groups)
            written.append(path)
            sources = ", ".join(sorted({g.source for g in groups}))
            new_count = sum(1 for g in groups if g.is_new)
            logger.debug(
                "Flushed %d acquisitions as %d unique items (%d new) from [%s]",
                len(events),
                len(groups),
                new_count,
                sources,
            )
        return written

    # Lifecycle

    def start(self, sources: Iterable[InventoryEventSource]) -> bool:
        """Wait for the sources, subscribe to them and run the startup handshake.

        Returns False, without subscribing, if the sources never became ready.
        """
        sources = list(sources)
        ready = wait_until(
            lambda: all(s.is_ready() for s in sources),
            poll_interval=self.ready_poll_interval,
            timeout=self.ready_timeout,
        )
        if not ready:
            logger.warning("Inventory sources not available, deferring monitoring start")
            return False

        with self._lock:
            if not self._initialized:
                self._handshake_running = True
            self._sources.extend(sources)
        for source in sources:
            source.subscribe(self._on_content_changed)
        logger.info("Item acquisition monitoring started for [%s]", ", ".join(s.name for s in sources))

        self.initialize(sources)
        return True

    def initialize(self, sources: Optional[Iterable[InventoryEventSource]] = None) -> Optional[Path]:
        """Record everything the player already holds as one initial batch.

        Runs once per debouncer; the batch bypasses the timer and is written
        immediately. Without any sources there is nothing to scan: the call
        is a no-op and a later `start()` still runs the handshake. Returns the
        history file written, if any.
        """
        with self._lock:
            if self._initialized:
                return None
            sources = list(self._sources if sources is None else sources)
            if not sources:
                logger.debug("No inventory sources attached yet; handshake deferred")
                self._handshake_running = False
                if self._pending and not self._armed:
                    self._arm_locked()
                return None
            self._handshake_running = True
        try:
            return self._run_handshake(sources)
        except Exception as exc:  # noqa: BLE001 - handshake is retried on the next start
            logger.error("Error initializing with existing items: %s", exc)
            return None
        finally:
            with self._lock:
                self._handshake_running = False
                if self._pending and not self._armed:
                    self._arm_locked()

    def _run_handshake(self, sources: List[InventoryEventSource]) -> Optional[Path]:
        save_slot = resolve_save_slot(self.slot_provider)
        timestamp = self.clock()
        with self._lock:
            already = set(self._collected.get(save_slot, ()))
        events: List[AcquisitionEvent] = []
        per_source: Dict[str, int] = {}
        for source in sources:
            count = 0
            for stack in source.stacks():
                if stack is None:
                    continue
                count += 1
                events.append(
                    AcquisitionEvent(
                        item_id=stack.item_id,
                        quantity=stack.stack_count,
                        display_name=stack.display_name or "",
                        source=source.name,
                        timestamp=timestamp,
                        save_slot=save_slot,
                        is_new=stack.item_id not in already,
                    )
                )
            per_source[source.name] = count

        with self._lock:
            self._collected.setdefault(save_slot, set()).update(ev.item_id for ev in events)

        path: Optional[Path] = None
        if events:
            groups = group_events(events)
            path = self.history.append(save_slot, build_batch(groups, timestamp))
            logger.info("Initialized with %d total items (%d unique)", len(events), len(groups))
            for name, count in per_source.items():
                logger.info("  - %s: %d items", name, count)
        else:
            logger.info("Initialized with no existing items")

        with self._lock:
            self._initialized = True
        return path

    def stop(self) -> List[Path]:
        """Unsubscribe from every source and synchronously flush whatever is pending."""
        with self._lock:
            sources, self._sources = self._sources, []
        for source in sources:
            try:
                source.unsubscribe(self._on_content_changed)
            except Exception as exc:  # noqa: BLE001 - keep unsubscribing the rest
                logger.error("Error unsubscribing from %s: %s", source.name, exc)
        self.scheduler.cancel()
        written = self.flush()
        logger.info("Item acquisition monitoring stopped")
        return written
