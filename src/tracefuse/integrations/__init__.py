"""Integrations that trace third-party LLM clients."""
