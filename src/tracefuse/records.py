"""
Record builders: traces, spans, generations and events.

Builders are thin. They validate fields through the typed bodies, call
Core.enqueue, and keep the accumulated payload in `data` for inspection.
They hold a reference to the client but never flush or own anything.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from .telemetry.bodies import (
    EventCreateBody,
    EventUpdateBody,
    GenerationCreateBody,
    GenerationUpdateBody,
    IngestionBody,
    SpanCreateBody,
    SpanUpdateBody,
    TraceBody,
)
from .telemetry.events import EventType
from .utils import new_id, utc_now

if TYPE_CHECKING:
    from .client import Core


class _Record:
    UPDATE_TYPE: ClassVar[EventType]
    UPDATE_BODY: ClassVar[type[IngestionBody]]

    def __init__(self, client: Core, body: IngestionBody):
        self.client = client
        self.data: dict[str, Any] = body.to_payload()
        self.id: str = body.id

    @property
    def trace_id(self) -> str:
        return self.data["traceId"]

    def update(self, **fields: Any):
        """
        Send the given fields as an update.

        Fields left as None are treated as unchanged. If nothing changed,
        no event is queued. `data` only takes the fields of updates that
        were actually queued.
        """
        changed = {key: value for key, value in fields.items() if value is not None}
        if not changed:
            return self

        body = self.UPDATE_BODY(id=self.id, **changed)
        if self.client.enqueue(self.UPDATE_TYPE, body):
            self.data.update(body.to_payload())
        return self

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.data.get('name')!r})"


class _Parent(_Record):
    """Records that can hold child observations."""

    @property
    def _parent_observation_id(self) -> str | None:
        return None

    def span(
        self,
        name: str | None = None,
        *,
        id: str | None = None,
        start_time=None,
        **fields: Any,
    ) -> Span:
        """Start a span under this record."""
        body = SpanCreateBody(
            id=id or new_id(),
            trace_id=self.trace_id,
            parent_observation_id=self._parent_observation_id,
            name=name,
            start_time=start_time or utc_now(),
            **fields,
        )
        self.client.enqueue(EventType.SPAN_CREATE, body)
        return Span(self.client, body)

    def generation(
        self,
        model: str | None = None,
        input: Any = None,
        output: Any = None,
        name: str | None = None,
        *,
        id: str | None = None,
        start_time=None,
        **fields: Any,
    ) -> Generation:
        """Record a model call under this record."""
        body = GenerationCreateBody(
            id=id or new_id(),
            trace_id=self.trace_id,
            parent_observation_id=self._parent_observation_id,
            name=name,
            model=model,
            input=input,
            output=output,
            start_time=start_time or utc_now(),
            **fields,
        )
        self.client.enqueue(EventType.GENERATION_CREATE, body)
        return Generation(self.client, body)

    def event(
        self,
        name: str | None = None,
        *,
        id: str | None = None,
        start_time=None,
        **fields: Any,
    ) -> Event:
        """Record a point-in-time event under this record."""
        body = EventCreateBody(
            id=id or new_id(),
            trace_id=self.trace_id,
            parent_observation_id=self._parent_observation_id,
            name=name,
            start_time=start_time or utc_now(),
            **fields,
        )
        self.client.enqueue(EventType.OBSERVATION_CREATE, body)
        return Event(self.client, body)


class Trace(_Parent):
    """
    Top-level record of one logical operation.

    Creating a Trace queues its trace-create event. Updates are sent as
    another trace-create carrying only the id and the changed fields,
    which the backend merges into the existing trace.
    """
    UPDATE_TYPE = EventType.TRACE_CREATE
    UPDATE_BODY = TraceBody

    def __init__(self, client: Core, body: TraceBody):
        super().__init__(client, body)
        self.client.enqueue(EventType.TRACE_CREATE, body)

    @property
    def trace_id(self) -> str:
        return self.id

    @property
    def name(self) -> str | None:
        return self.data.get("name")


class Span(_Parent):
    """A timed sub-operation within a trace."""
    UPDATE_TYPE = EventType.SPAN_UPDATE
    UPDATE_BODY = SpanUpdateBody

    @property
    def _parent_observation_id(self) -> str | None:
        return self.id

    def end(self, **fields: Any) -> Span:
        """Mark the span finished now, along with any final fields."""
        return self.update(end_time=utc_now(), **fields)


class Generation(_Record):
    """A span recording one model call (input, output, usage)."""
    UPDATE_TYPE = EventType.GENERATION_UPDATE
    UPDATE_BODY = GenerationUpdateBody

    def end(self, **fields: Any) -> Generation:
        return self.update(end_time=utc_now(), **fields)


class Event(_Record):
    """An instantaneous annotation within a trace."""
    UPDATE_TYPE = EventType.OBSERVATION_UPDATE
    UPDATE_BODY = EventUpdateBody
