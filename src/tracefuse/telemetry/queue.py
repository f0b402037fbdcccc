"""Thread-safe unbounded buffer of pending ingestion events."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from .events import IngestionEvent


@dataclass
class EventQueue:
    """
    Multi-producer / multi-consumer FIFO of ingestion events.

    The internal lock is held only for the duration of a single deque
    operation, so no caller ever does I/O while holding it. There is no
    capacity bound.
    """
    _events: deque[IngestionEvent] = field(default_factory=deque, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def push(self, event: IngestionEvent) -> int:
        """Append an event. Returns the queue size right after the push."""
        with self._lock:
            self._events.append(event)
            return len(self._events)

    def push_many(self, events: Iterable[IngestionEvent]) -> int:
        """Append several events at the tail as one atomic step."""
        with self._lock:
            self._events.extend(events)
            return len(self._events)

    def drain_all_nonblocking(self) -> list[IngestionEvent]:
        """Remove and return every queued event, oldest first."""
        with self._lock:
            drained = list(self._events)
            self._events.clear()
        return drained

    def snapshot(self) -> list[IngestionEvent]:
        """Copy of the current contents without removing anything."""
        with self._lock:
            return list(self._events)

    def size(self) -> int:
        with self._lock:
            return len(self._events)

    def __len__(self) -> int:
        return self.size()

    def __getitem__(self, index: int) -> IngestionEvent:
        return self.snapshot()[index]
