#!/usr/bin/env python3
"""Demo script showing manual tracing.

Demonstrates:
1. Creating a trace with user and release info
2. Recording a generation with usage
3. A span that is ended after some work
4. A point-in-time event

Set credentials first:
    export TRACEFUSE_PUBLIC_KEY=pk-...
    export TRACEFUSE_SECRET_KEY=sk-...

Then run:
    python examples/basic_usage.py
"""

import time

from tracefuse import Core, ObservationLevel
from tracefuse.logging_config import setup_logging


def main():
    setup_logging("INFO")

    # Credentials and host come from TRACEFUSE_* environment variables
    client = Core()

    trace = client.trace(
        name="Example Trace",
        user_id="user-123",
        metadata={"source": "python-example"},
        version="1.0.0",
        release="2023-02-26",
    )

    trace.generation(
        name="Example Generation",
        model="gpt-3.5-turbo",
        input={
            "messages": [
                {"role": "system", "content": "You are a helpful assistant."},
                {"role": "user", "content": "Tell me a joke about programming."},
            ]
        },
        output="Why do programmers prefer dark mode? Because light attracts bugs!",
        usage={"input": 35, "output": 15, "total": 50},
        usage_details={"prompt_tokens": 35, "completion_tokens": 15, "total_tokens": 50},
        model_parameters={"temperature": 0.7, "max_tokens": 100},
        level=ObservationLevel.DEFAULT,
    )

    span = trace.span(
        name="Data Processing Span",
        input={"data_size": 1000},
        level=ObservationLevel.DEBUG,
    )
    time.sleep(0.5)
    span.end(metadata={"status": "completed"}, output={"processed_items": 1000})

    trace.event(
        name="Process Completed",
        level=ObservationLevel.INFO,
        metadata={"duration_ms": 500},
    )

    if client.shutdown():
        print("Example completed! Check your dashboard.")
    else:
        print(f"Delivery failed. Stats: {client.dispatcher.stats}")


if __name__ == "__main__":
    main()
