"""Explicit keyed registry of clients."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Hashable

from .client import Core

logger = logging.getLogger(__name__)


def thread_key() -> int:
    """Key identifying the calling thread."""
    return threading.get_ident()


@dataclass
class ClientRegistry:
    """
    Thread-safe map from a caller-chosen key to a client.

    For applications that want one client per thread, tenant or task.
    The registry is owned by the caller; the SDK never consults a global
    one.

    Usage:
        registry = ClientRegistry()
        client = registry.get_or_create(thread_key(), lambda: Core(...))
    """
    _clients: dict[Hashable, Core] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def get(self, key: Hashable) -> Core | None:
        with self._lock:
            return self._clients.get(key)

    def get_or_create(self, key: Hashable, factory: Callable[[], Core]) -> Core:
        """Return the client for key, creating it with factory on first use."""
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = factory()
                self._clients[key] = client
            return client

    def register(self, key: Hashable, client: Core) -> None:
        with self._lock:
            self._clients[key] = client

    def remove(self, key: Hashable) -> Core | None:
        """Forget a client without shutting it down."""
        with self._lock:
            return self._clients.pop(key, None)

    def shutdown_all(self) -> bool:
        """Shut down and forget every client. True if every final flush succeeded."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()

        results = [client.shutdown() for client in clients]
        logger.info(f"Shut down {len(results)} clients")
        return all(results)

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._clients
