"""Shared test fixtures."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

import pytest

from tracefuse.client import Core
from tracefuse.config import ClientConfig
from tracefuse.telemetry.transport import IngestionResponse, Transport


@dataclass
class RecordingTransport(Transport):
    """
    Transport double that records payloads instead of sending them.

    Statuses are consumed in order; once exhausted, default_status is used.
    A status given as an exception instance is raised instead.
    """
    statuses: list[Any] = field(default_factory=list)
    default_status: int = 200

    payloads: list[dict] = field(default_factory=list, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def send(self, payload: dict[str, Any]) -> IngestionResponse:
        with self._lock:
            self.payloads.append(payload)
            status = self.statuses.pop(0) if self.statuses else self.default_status

        if isinstance(status, Exception):
            raise status
        return IngestionResponse(status_code=status, body={"successes": [], "errors": []})

    @property
    def calls(self) -> int:
        return len(self.payloads)

    def sent_ids(self) -> list[str]:
        return [event["id"] for payload in self.payloads for event in payload["batch"]]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def config() -> ClientConfig:
    """Test configuration with background flushing off."""
    return ClientConfig(
        public_key="pk-test",
        secret_key="sk-test",
        host="https://tracing.test",
        disable_background_flush=True,
    )


@pytest.fixture
def make_client(config, transport):
    """Factory for clients sharing the recording transport."""
    clients: list[Core] = []

    def factory(**options: Any) -> Core:
        client = Core(config, transport=transport, **options)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.scheduler.stop()


@pytest.fixture
def client(make_client) -> Core:
    return make_client()
