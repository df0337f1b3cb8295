# src/fibrace/channel.py
from __future__ import annotations

import queue
import threading
from collections.abc import Iterator
from typing import Generic, TypeVar

from fibrace.utility import ChannelClosed

T = TypeVar("T")

_CLOSED = object()


class Channel(Generic[T]):
    """
    Unbounded multi-producer / single-consumer queue with close-once semantics.

    send() after close() and a second close() both raise ChannelClosed, so a
    producer that outlives the join barrier fails loudly instead of losing data.
    """

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, item: T) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosed("send on closed channel")
            self._queue.put(item)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosed("close of closed channel")
            self._closed = True
            self._queue.put(_CLOSED)

    def recv(self, timeout: float | None = None) -> tuple[T | None, bool]:
        """
        Return (item, True), or (None, False) once the channel is closed and
        drained. Raises queue.Empty when `timeout` elapses first.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            self._queue.put(_CLOSED)  # later receivers see "closed" too
            return None, False
        return item, True

    def __iter__(self) -> Iterator[T]:
        while True:
            item, ok = self.recv()
            if not ok:
                return
            yield item
