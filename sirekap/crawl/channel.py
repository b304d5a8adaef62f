"""Bounded hand-off from many fetch threads to the single sink."""

from __future__ import annotations

import queue
import threading
from typing import Iterator

from sirekap.common.errors import ChannelClosedError
from sirekap.common.models import ResultRecord

_CLOSED = object()


class ResultChannel:
    """Bounded FIFO of accepted records; ``send`` blocks while the buffer is full."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._queue: queue.Queue = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, record: ResultRecord) -> None:
        if self._closed.is_set():
            raise ChannelClosedError("send on closed channel")
        self._queue.put(record)

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[ResultRecord]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item
