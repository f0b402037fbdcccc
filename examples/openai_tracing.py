#!/usr/bin/env python3
"""Demo script showing OpenAI call tracing.

Demonstrates:
1. Wrapping an OpenAI client so each chat call gets its own trace
2. Attaching follow-up calls to an existing trace

Requires the openai package and OPENAI_API_KEY, plus TRACEFUSE_* credentials:
    python examples/openai_tracing.py
"""

from openai import OpenAI

from tracefuse import Core
from tracefuse.integrations.openai import observe
from tracefuse.logging_config import setup_logging


def main():
    setup_logging()
    client = Core()
    openai_client = OpenAI()

    messages = [
        {"role": "system", "content": "You are a helpful assistant."},
        {"role": "user", "content": "What is Django?"},
    ]

    # Option 1: one trace per call
    traced = observe(openai_client, client, trace_name="django-questions")
    response = traced.chat(model="gpt-3.5-turbo", messages=messages, temperature=0.7)

    answer = response.choices[0].message.content
    print("Response from OpenAI:")
    print(answer)

    # Option 2: calls recorded under an existing trace
    trace = client.trace(name="Multi-step conversation")
    follow_up = observe(openai_client, parent_trace=trace, generation_name="Django Follow-up Question")

    response2 = follow_up.chat(
        model="gpt-3.5-turbo",
        messages=messages + [
            {"role": "assistant", "content": answer},
            {"role": "user", "content": "What are the main components of Django?"},
        ],
        temperature=0.7,
    )

    print("\nFollow-up response:")
    print(response2.choices[0].message.content)

    traced.shutdown()
    print("\nExample completed! Check your dashboard.")


if __name__ == "__main__":
    main()
