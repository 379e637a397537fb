from __future__ import annotations

import threading
from typing import Generic, Iterator, List, Optional, TypeVar

from searchdump.core.exceptions import RunCancelled

T = TypeVar("T")

_CLOSED = object()


class Channel(Generic[T]):
    """Single-slot hand-off between one producer and one consumer.

    ``send`` returns only after the consumer has called ``task_done`` for the
    item, so the producer never runs more than one artifact ahead of the
    sink. Every wait also watches ``stop`` and gives up once it is set.
    """

    def __init__(self, stop: Optional[threading.Event] = None, poll_interval: float = 0.5):
        self.stop = stop or threading.Event()
        self.poll_interval = poll_interval
        self._cond = threading.Condition()
        self._slot: List[T] = []
        self._pending = 0
        self._closed = False

    def send(self, item: T) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("send on closed channel")
            if self.stop.is_set():
                raise RunCancelled("consumer stopped; not sending")
            self._slot.append(item)
            self._pending += 1
            self._cond.notify_all()
            while self._pending and not self.stop.is_set():
                self._cond.wait(self.poll_interval)
            if self._pending:
                raise RunCancelled("consumer stopped before accepting the item")

    def receive(self) -> object:
        with self._cond:
            while not self._slot and not self._closed and not self.stop.is_set():
                self._cond.wait(self.poll_interval)
            if self._slot and not self.stop.is_set():
                return self._slot.pop(0)
            return _CLOSED

    def task_done(self) -> None:
        with self._cond:
            if self._pending <= 0:
                raise ValueError("task_done() called too many times")
            self._pending -= 1
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def cancel(self) -> None:
        self.stop.set()
        with self._cond:
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.receive()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]
