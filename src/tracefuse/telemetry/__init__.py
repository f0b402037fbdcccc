"""Telemetry engine - queueing, batching and background delivery of ingestion events."""

from .events import EventType, IngestionEvent
from .bodies import (
    ObservationLevel,
    IngestionBody,
    TraceBody,
    SpanCreateBody,
    GenerationCreateBody,
    EventCreateBody,
    SpanUpdateBody,
    GenerationUpdateBody,
    EventUpdateBody,
)
from .queue import EventQueue
from .transport import Transport, HttpTransport, IngestionResponse
from .dispatcher import BatchDispatcher
from .scheduler import FlushScheduler

__all__ = [
    "EventType",
    "IngestionEvent",
    "ObservationLevel",
    "IngestionBody",
    "TraceBody",
    "SpanCreateBody",
    "GenerationCreateBody",
    "EventCreateBody",
    "SpanUpdateBody",
    "GenerationUpdateBody",
    "EventUpdateBody",
    "EventQueue",
    "Transport",
    "HttpTransport",
    "IngestionResponse",
    "BatchDispatcher",
    "FlushScheduler",
]
