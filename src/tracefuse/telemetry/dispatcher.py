"""Batch dispatcher: drains the queue and delivers one batch per flush."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field

from .events import IngestionEvent
from .queue import EventQueue
from .transport import Transport


logger = logging.getLogger(__name__)


@dataclass
class BatchDispatcher:
    """
    Delivers queued events to a transport in batches.

    Each flush takes whatever is queued at that moment and submits it as a
    single request. Events pushed while a flush is in progress wait for the
    next one. Overlapping flushes each drain a disjoint set of events.

    Failure handling:
    - 2xx: delivered
    - 5xx / 429 / transport error: re-queued at the tail, at most
      retry_count times per event, then dropped
    - any other status: dropped (the backend rejected the payload)

    After a retryable failure, automatic flushes are skipped for
    retry_delay seconds. Forced flushes always go out.
    """
    queue: EventQueue
    transport: Transport

    # Re-queues allowed per event before it is dropped
    retry_count: int = 3

    # Backoff window (seconds) for automatic flushes after a retryable failure
    retry_delay: float = 1.0

    # Internal state
    _retry_after: float = field(default=0.0, init=False)
    _stats: dict = field(default_factory=dict, init=False)
    _stats_lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def __post_init__(self):
        self._stats = {
            "batches_sent": 0,
            "events_sent": 0,
            "events_requeued": 0,
            "events_dropped": 0,
            "flush_errors": 0,
        }

    def flush(self, force: bool = True) -> bool:
        """
        Attempt to deliver everything currently queued.

        Returns True when there was nothing to send or the batch was
        accepted, False otherwise. Never raises.
        """
        if self.queue.size() == 0:
            return True

        if not force and self.in_backoff:
            logger.debug("Skipping automatic flush during retry backoff")
            return False

        events = self.queue.drain_all_nonblocking()
        if not events:
            return True

        payload = {"batch": [event.to_dict() for event in events]}

        try:
            response = self.transport.send(payload)
        except Exception as e:
            logger.error(f"Error sending {len(events)} events: {e}")
            self._retry_later(events)
            return False

        if response.is_success:
            logger.debug(f"Successfully sent {len(events)} events ({response.status_code})")
            self._log_partial_errors(response.body)
            self._count(batches_sent=1, events_sent=len(events))
            return True

        logger.error(f"Failed to send events: {response.status_code} - {response.body}")
        if response.is_retryable:
            self._retry_later(events)
        else:
            logger.error(f"Dropping {len(events)} events rejected with status {response.status_code}")
            self._count(flush_errors=1, events_dropped=len(events))
        return False

    @property
    def in_backoff(self) -> bool:
        return time.monotonic() < self._retry_after

    def _retry_later(self, events: list[IngestionEvent]) -> None:
        """Re-queue failed events that still have attempts left."""
        retry: list[IngestionEvent] = []
        exhausted = 0
        for event in events:
            if event.attempts < self.retry_count:
                retry.append(event.retried())
            else:
                exhausted += 1

        if exhausted:
            logger.error(f"Dropping {exhausted} events after {self.retry_count} failed retries")

        if retry:
            self.queue.push_many(retry)

        self._retry_after = time.monotonic() + self.retry_delay
        self._count(flush_errors=1, events_requeued=len(retry), events_dropped=exhausted)

    def _log_partial_errors(self, body: object) -> None:
        # 207 responses list per-event failures while accepting the rest
        if isinstance(body, dict) and body.get("errors"):
            logger.warning(f"Backend rejected {len(body['errors'])} events: {body['errors']}")

    def _count(self, **increments: int) -> None:
        with self._stats_lock:
            for key, value in increments.items():
                self._stats[key] += value

    @property
    def stats(self) -> dict:
        """Get dispatcher statistics."""
        with self._stats_lock:
            stats = dict(self._stats)
        return {
            **stats,
            "queue_size": self.queue.size(),
            "in_backoff": self.in_backoff,
        }
