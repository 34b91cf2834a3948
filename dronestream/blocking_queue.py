"""A bounded, closable FIFO queue shared between threads."""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class BlockingQueue(Generic[T]):
    """Bounded FIFO queue whose producers and consumers block.

    ``push`` waits while the queue is full, ``pop`` waits while it is empty.
    After ``close`` new items are dropped, blocked callers wake up, and
    ``pop`` drains what is left before returning ``None``.
    ``None`` itself cannot be queued, since it marks the end of the stream.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._items: deque[T] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)
        self._closed = False

    def push(self, item: T) -> bool:
        """Append ``item``, waiting for room; return False if the queue is closed."""
        if item is None:
            raise ValueError("None cannot be pushed onto a BlockingQueue")
        with self._not_full:
            self._not_full.wait_for(
                lambda: self._closed or len(self._items) < self._capacity
            )
            if self._closed:
                return False
            self._items.append(item)
            self._not_empty.notify()
        return True

    def pop(self) -> T | None:
        """Remove and return the oldest item, or None once closed and drained."""
        with self._not_empty:
            self._not_empty.wait_for(lambda: self._closed or bool(self._items))
            if not self._items:
                return None
            item = self._items.popleft()
            self._not_full.notify()
        return item

    def close(self) -> None:
        """Stop accepting items and wake every waiting caller."""
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def __iter__(self) -> Iterator[T]:
        """Yield items until the queue is closed and empty."""
        while (item := self.pop()) is not None:
            yield item