"""Join-group with a fixed cap on in-flight units of work."""

from __future__ import annotations

import threading

from sirekap.common.errors import ConcurrencyLimitError


class BoundedConcurrencyGroup:
    """Wait group whose ``register`` blocks while ``limit`` units are in flight.

    Each branch point owns its own group, so the cap applies per expansion
    and not across the whole crawl.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self._slots = threading.Semaphore(limit)
        self._cond = threading.Condition()
        self._pending = 0
        self._peak = 0

    @property
    def active(self) -> int:
        with self._cond:
            return self._pending

    @property
    def peak_active(self) -> int:
        with self._cond:
            return self._peak

    def register(self, n: int = 1) -> None:
        if n < 1:
            raise ConcurrencyLimitError(f"register count must be >= 1, got {n}")
        if n > self.limit:
            raise ConcurrencyLimitError(f"register count {n} exceeds limit {self.limit}")
        for _ in range(n):
            self._slots.acquire()
        with self._cond:
            self._pending += n
            self._peak = max(self._peak, self._pending)

    def release(self) -> None:
        with self._cond:
            if self._pending == 0:
                raise ConcurrencyLimitError("release called with no registered work")
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()
        self._slots.release()

    def await_all(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._pending == 0)
