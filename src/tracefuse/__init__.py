"""
tracefuse - LLM tracing client

Records traces, spans, generations and events, batches them in memory and
ships them to the ingestion API from a background thread.

Usage:
    from tracefuse import create_client

    client = create_client(public_key="pk-...", secret_key="sk-...")

    trace = client.trace(name="Example Trace", user_id="user-123")
    generation = trace.generation(
        model="gpt-4o",
        input={"messages": [{"role": "user", "content": "Tell me a joke"}]},
        output="Why do programmers prefer dark mode?",
        usage={"input": 35, "output": 15, "total": 50},
    )
    span = trace.span(name="Data Processing")
    span.end(output={"processed_items": 1000})
    trace.event(name="Process Completed", level="INFO")

    client.shutdown()
"""

from .client import ClientState, Core, create_client
from .config import ClientConfig
from .errors import ConfigError, TracefuseError
from .records import Event, Generation, Span, Trace
from .registry import ClientRegistry, thread_key
from .telemetry.bodies import ObservationLevel
from .telemetry.events import EventType, IngestionEvent

__version__ = "0.1.0"

__all__ = [
    # Client
    "Core",
    "ClientState",
    "ClientConfig",
    "create_client",
    "ClientRegistry",
    "thread_key",
    # Records
    "Trace",
    "Span",
    "Generation",
    "Event",
    "ObservationLevel",
    # Events
    "EventType",
    "IngestionEvent",
    # Exceptions
    "TracefuseError",
    "ConfigError",
]
