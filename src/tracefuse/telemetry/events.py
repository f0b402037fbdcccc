"""Ingestion event types."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from ..utils import format_timestamp, new_id, utc_now


class EventType(str, Enum):
    """Kind of ingestion event accepted by the backend."""
    TRACE_CREATE = "trace-create"
    GENERATION_CREATE = "generation-create"
    SPAN_CREATE = "span-create"
    OBSERVATION_CREATE = "observation-create"
    GENERATION_UPDATE = "generation-update"
    SPAN_UPDATE = "span-update"
    OBSERVATION_UPDATE = "observation-update"


@dataclass(frozen=True, slots=True)
class IngestionEvent:
    """
    A single queued telemetry event.

    The envelope is immutable. Re-queueing after a failed delivery produces
    a copy with a bumped attempt counter; id, type, body and timestamp
    never change.
    """
    id: str
    type: EventType
    body: dict[str, Any]
    timestamp: datetime

    # Delivery attempts that already failed (local only, never sent)
    attempts: int = field(default=0, compare=False)

    @classmethod
    def create(cls, event_type: EventType | str, body: dict[str, Any]) -> IngestionEvent:
        """Factory with a fresh id and the current UTC time."""
        return cls(
            id=new_id(),
            type=EventType(event_type),
            body=dict(body),
            timestamp=utc_now(),
        )

    def retried(self) -> IngestionEvent:
        """Copy of this event after one more failed attempt."""
        return replace(self, attempts=self.attempts + 1)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        return {
            "id": self.id,
            "type": self.type.value,
            "body": self.body,
            "timestamp": format_timestamp(self.timestamp),
        }
