"""Background flush scheduler."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable


logger = logging.getLogger(__name__)


@dataclass
class FlushScheduler:
    """
    Periodically invokes a flush callback on a daemon thread.

    Ensures events don't sit in the queue too long during low traffic.
    The thread never keeps the process alive, and stop() interrupts the
    wait between runs without waiting for a run already in progress.
    """
    callback: Callable[[], object]
    interval_seconds: float = 60.0
    name: str = "tracefuse-flush"

    # Internal state
    _stop_event: threading.Event = field(default_factory=threading.Event, init=False)
    _thread: threading.Thread | None = field(default=None, init=False)
    _runs: int = field(default=0, init=False)
    _errors: int = field(default=0, init=False)
    _stats_lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def start(self) -> None:
        """Start the loop. No-op if already started or stopped."""
        if self._thread is not None or self._stop_event.is_set():
            return

        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"Flush scheduler started (interval={self.interval_seconds}s)")

    def stop(self) -> None:
        """Cancel the pending wait and end the loop."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        logger.info(f"Flush scheduler stopped after {self._runs} runs ({self._errors} errors)")

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()

    def run_once(self) -> None:
        """Invoke the callback once, containing any exception it raises."""
        with self._stats_lock:
            self._runs += 1
        try:
            self.callback()
        except Exception:
            with self._stats_lock:
                self._errors += 1
            logger.exception("Scheduled flush failed")

    @property
    def running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    @property
    def stats(self) -> dict:
        with self._stats_lock:
            runs, errors = self._runs, self._errors
        return {
            "runs": runs,
            "errors": errors,
            "running": self.running,
        }
