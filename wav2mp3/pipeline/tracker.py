"""Shared worker-slot counter guarding admission and drain.

The tracker owns the only shared mutable state of a run: the number of
tasks currently holding a slot. One re-entrant lock protects the count
and also serializes console output, so a progress line printed from any
thread is never interleaved with another one.

Waiting is done on a Condition with a timed wait: a waiter wakes as soon
as a slot is released, and at least once per interval so it can report
progress while it is blocked.
"""

import logging
import threading
from typing import Callable, Optional, TypeVar

T = TypeVar("T")


class WorkerSlotTracker:
    def __init__(self):
        self._lock = threading.Condition(threading.RLock())
        self._running = 0
        self._peak = 0
        self._underflows = 0
        self.logger = logging.getLogger(__name__)

    @property
    def lock(self) -> threading.Condition:
        return self._lock

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak

    @property
    def underflows(self) -> int:
        with self._lock:
            return self._underflows

    def read(self) -> int:
        with self._lock:
            return self._running

    def increment(self) -> int:
        with self._lock:
            self._running += 1
            self._peak = max(self._peak, self._running)
            self._lock.notify_all()
            return self._running

    def decrement(self) -> bool:
        """Releases one slot. Returns False (and leaves the count at 0) on underflow."""
        with self._lock:
            if self._running <= 0:
                self._underflows += 1
                self.logger.error(
                    f"Slot underflow in {threading.current_thread().name}: running count is already 0"
                )
                return False
            self._running -= 1
            self._lock.notify_all()
            return True

    def admit(
        self,
        limit: int,
        spawn: Callable[[], T],
        interval: float = 1.0,
        on_wait: Optional[Callable[[int], None]] = None,
    ) -> T:
        """Blocks until fewer than `limit` slots are taken, then spawns.

        The slot is counted before `spawn` runs, with the lock held, so a
        started task always sees its own slot. If `spawn` raises, the slot
        is given back and the exception propagates with the count unchanged.
        """
        with self._lock:
            while self._running >= limit:
                if on_wait:
                    on_wait(self._running)
                self._lock.wait(timeout=interval)
            self._running += 1
            try:
                result = spawn()
            except BaseException:
                self._running -= 1
                raise
            self._peak = max(self._peak, self._running)
            self._lock.notify_all()
            return result

    def wait_drained(self, interval: float = 1.0, on_wait: Optional[Callable[[int], None]] = None) -> None:
        """Blocks until every slot has been released."""
        with self._lock:
            while self._running > 0:
                if on_wait:
                    on_wait(self._running)
                self._lock.wait(timeout=interval)
