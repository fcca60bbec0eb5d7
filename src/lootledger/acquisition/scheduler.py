from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SingleShotScheduler(ABC):
    """Fires a callback once after a delay.

    While armed, further `arm()` calls are ignored: the first deadline stands
    and is never reset or extended.
    """

    @abstractmethod
    def arm(self, delay: float, callback: Callable[[], None]) -> bool:
        """Arm the timer. Returns False (and does nothing) if already armed."""
        raise NotImplementedError

    @abstractmethod
    def cancel(self) -> bool:
        """Disarm without firing. Returns True if a pending timer was cancelled."""
        raise NotImplementedError

    @property
    @abstractmethod
    def pending(self) -> bool:
        raise NotImplementedError


class TimerScheduler(SingleShotScheduler):
    """SingleShotScheduler backed by a daemon threading.Timer.

    The armed state is cleared before the callback runs, so the callback (or
    anything racing with it) may arm the next window straight away.
    """

    def __init__(self, name: str = "lootledger-debounce") -> None:
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._name = name

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def arm(self, delay: float, callback: Callable[[], None]) -> bool:
        with self._lock:
            if self._timer is not None:
                return False
            timer = threading.Timer(delay, self._fire, args=(callback,))
            timer.daemon = True
            timer.name = self._name
            self._timer = timer
            timer.start()
            return True

    def cancel(self) -> bool:
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        return True

    def _fire(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._timer is None or self._timer is not threading.current_thread():
                # Cancelled (or superseded) after the timer thread had already woken up
                return
            self._timer = None
        try:
            callback()
        except Exception as exc:  # noqa: BLE001 - timer thread has no caller to report to
            logger.exception("Scheduled callback failed: %s", exc)
