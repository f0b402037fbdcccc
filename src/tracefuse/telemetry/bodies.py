"""
Typed bodies for ingestion events.

One model per event type. Optional fields default to None, which means
"not set": serialization drops them instead of sending nulls. Field names
are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from ..utils import format_timestamp
from .events import EventType


Timestamp = Annotated[
    datetime,
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]


class ObservationLevel(str, Enum):
    """Severity attached to an observation."""
    DEBUG = "DEBUG"
    DEFAULT = "DEFAULT"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class IngestionBody(BaseModel):
    """Base for all event bodies."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        protected_namespaces=(),
    )

    id: str

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TraceBody(IngestionBody):
    """Body of trace-create. Also used to upsert trace fields."""
    name: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    input: Any = None
    output: Any = None
    metadata: Any = None
    tags: list[str] | None = None
    version: str | None = None
    release: str | None = None
    public: bool | None = None
    timestamp: Timestamp | None = None


class _ObservationFields(IngestionBody):
    name: str | None = None
    start_time: Timestamp | None = None
    input: Any = None
    output: Any = None
    metadata: Any = None
    level: ObservationLevel | None = None
    status_message: str | None = None
    version: str | None = None


class _TimedFields(_ObservationFields):
    end_time: Timestamp | None = None


class _GenerationFields(_TimedFields):
    model: str | None = None
    model_parameters: dict[str, Any] | None = None
    usage: dict[str, Any] | None = None
    usage_details: dict[str, Any] | None = None
    completion_start_time: Timestamp | None = None


class SpanCreateBody(_TimedFields):
    trace_id: str
    parent_observation_id: str | None = None


class GenerationCreateBody(_GenerationFields):
    trace_id: str
    parent_observation_id: str | None = None


class EventCreateBody(_ObservationFields):
    trace_id: str
    parent_observation_id: str | None = None


class SpanUpdateBody(_TimedFields):
    pass


class GenerationUpdateBody(_GenerationFields):
    pass


class EventUpdateBody(_ObservationFields):
    pass


BODY_TYPES: dict[EventType, type[IngestionBody]] = {
    EventType.TRACE_CREATE: TraceBody,
    EventType.SPAN_CREATE: SpanCreateBody,
    EventType.GENERATION_CREATE: GenerationCreateBody,
    EventType.OBSERVATION_CREATE: EventCreateBody,
    EventType.SPAN_UPDATE: SpanUpdateBody,
    EventType.GENERATION_UPDATE: GenerationUpdateBody,
    EventType.OBSERVATION_UPDATE: EventUpdateBody,
}


def body_type_for(event_type: EventType | str) -> type[IngestionBody]:
    """Look up the body model for an event type."""
    return BODY_TYPES[EventType(event_type)]
