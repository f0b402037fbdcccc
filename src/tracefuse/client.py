"""Client façade: owns the queue, dispatcher and background scheduler."""

from __future__ import annotations

import dataclasses
import logging
import random
from enum import Enum
from typing import Any, Mapping

from pydantic_core import to_jsonable_python

from .config import ClientConfig
from .records import Trace
from .telemetry.bodies import IngestionBody, TraceBody
from .telemetry.dispatcher import BatchDispatcher
from .telemetry.events import EventType, IngestionEvent
from .telemetry.queue import EventQueue
from .telemetry.scheduler import FlushScheduler
from .telemetry.transport import HttpTransport, Transport
from .utils import new_id, utc_now


logger = logging.getLogger(__name__)


class ClientState(str, Enum):
    ACTIVE = "active"              # Accepting events, scheduler running
    SHUTTING_DOWN = "shutting_down"  # Scheduler stopped, final flush in progress
    TERMINAL = "terminal"          # No automatic flushing any more


class Core:
    """
    Tracing client.

    Usage:
        client = Core(public_key="pk-...", secret_key="sk-...")
        trace = client.trace(name="checkout")
        trace.generation(model="gpt-4o", input="Hi", output="Hello")
        client.shutdown()

        # Or with explicit config
        client = Core(ClientConfig(flush_at=50, sample_rate=0.25))

    enqueue() never raises on delivery problems; failures are reported
    through boolean results and logging.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: Transport | None = None,
        rng: random.Random | None = None,
        **options: Any,
    ):
        if config is None:
            config = ClientConfig.from_dict(options)
        elif options:
            config = dataclasses.replace(config, **options)

        self._config = config
        self._rng = rng or random.Random()
        self._queue = EventQueue()
        self._transport = transport or HttpTransport(
            host=config.host,
            public_key=config.public_key,
            secret_key=config.secret_key,
            headers=config.additional_headers,
        )
        self._dispatcher = BatchDispatcher(
            queue=self._queue,
            transport=self._transport,
            retry_count=config.retry_count,
            retry_delay=config.retry_delay,
        )
        self._scheduler = FlushScheduler(
            callback=self._dispatcher.flush,
            interval_seconds=config.flush_interval,
        )
        self._state = ClientState.ACTIVE

        if not config.disable_background_flush:
            self._scheduler.start()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def queue(self) -> EventQueue:
        """Pending events (read access for introspection)."""
        return self._queue

    @property
    def dispatcher(self) -> BatchDispatcher:
        return self._dispatcher

    @property
    def scheduler(self) -> FlushScheduler:
        return self._scheduler

    @property
    def state(self) -> ClientState:
        return self._state

    def enqueue(
        self,
        event_type: EventType | str,
        body: Mapping[str, Any] | IngestionBody,
    ) -> bool:
        """
        Add an event to the queue.

        Returns False if the client is disabled, the event was sampled out
        or it could not be built (unknown type, unserializable body). True
        once the event is queued. Never raises. Reaching flush_at triggers a
        flush on the calling thread before returning.
        """
        if not self._config.enabled:
            return False

        if not self._sampled_in():
            logger.debug(f"Sampled out {event_type} event")
            return False

        try:
            if isinstance(body, IngestionBody):
                payload = body.to_payload()
            else:
                payload = to_jsonable_python(dict(body))
            event = IngestionEvent.create(event_type, payload)
        except Exception as e:
            logger.error(f"Dropping {event_type} event that could not be built: {e}")
            return False

        size = self._queue.push(event)

        if size >= self._config.flush_at and self._state is ClientState.ACTIVE:
            self._dispatcher.flush(force=False)

        return True

    def _sampled_in(self) -> bool:
        rate = self._config.sample_rate
        if rate >= 1.0:
            return True
        return self._rng.random() < rate

    def flush(self) -> bool:
        """Send everything queued now. Returns whether delivery succeeded."""
        return self._dispatcher.flush()

    def flush_async(self) -> bool:
        """Same as flush(); the call itself is synchronous."""
        return self.flush()

    def shutdown(self) -> bool:
        """Stop background flushing and send what is left."""
        if self._state is ClientState.ACTIVE:
            self._state = ClientState.SHUTTING_DOWN
            self._scheduler.stop()

        try:
            return self.flush()
        finally:
            self._state = ClientState.TERMINAL
            logger.info(f"Client shut down. Stats: {self._dispatcher.stats}")

    def trace(
        self,
        name: str | None = None,
        *,
        id: str | None = None,
        **fields: Any,
    ) -> Trace:
        """
        Start a new trace.

        Args:
            name: Name of the trace
            id: Optional trace id, a UUID is generated otherwise
            **fields: Any other trace field (user_id, session_id, metadata,
                tags, input, output, version, release, public)
        """
        body = TraceBody(id=id or new_id(), name=name, timestamp=utc_now(), **fields)
        return Trace(self, body)

    def __enter__(self) -> Core:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


def create_client(
    public_key: str,
    secret_key: str,
    host: str = "https://cloud.langfuse.com",
    **options: Any,
) -> Core:
    """
    Create a client from credentials and options.

    Usage:
        from tracefuse import create_client
        client = create_client(public_key="pk-...", secret_key="sk-...", flush_at=20)
    """
    return Core(public_key=public_key, secret_key=secret_key, host=host, **options)
