from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def wait_until(
    predicate: Callable[[], bool],
    *,
    poll_interval: float = 0.1,
    timeout: Optional[float] = None,
    stop_event: Optional[threading.Event] = None,
) -> bool:
    """Poll `predicate` until it returns True.

    Cooperative: sleeps between polls instead of blocking on a host object.
    Exceptions raised by the predicate count as "not ready yet".

    Returns:
        True once the predicate holds, False on timeout or when `stop_event` is set.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        try:
            if predicate():
                return True
        except Exception as exc:  # noqa: BLE001 - host objects may throw while loading
            logger.debug("Readiness check raised %s; retrying", exc)
        if deadline is not None and time.monotonic() >= deadline:
            return False
        if stop_event is not None:
            if stop_event.wait(poll_interval):
                return False
        else:
            time.sleep(poll_interval)
