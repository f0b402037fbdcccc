"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Any

from .errors import ConfigError


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ClientConfig:
    """
    Configuration for the tracing client. Immutable after construction.

    Can be set via:
    - Constructor arguments
    - Environment variables (TRACEFUSE_*)
    - Config file (YAML or JSON)
    """
    # Credentials (basic auth: public key as username, secret key as password)
    public_key: str = field(
        default_factory=lambda: os.environ.get("TRACEFUSE_PUBLIC_KEY", "")
    )
    secret_key: str = field(
        default_factory=lambda: os.environ.get("TRACEFUSE_SECRET_KEY", "")
    )

    # Ingestion backend
    host: str = field(
        default_factory=lambda: os.environ.get("TRACEFUSE_HOST", "https://cloud.langfuse.com")
    )

    # Queue size that triggers an immediate flush
    flush_at: int = field(
        default_factory=lambda: int(os.environ.get("TRACEFUSE_FLUSH_AT", "10"))
    )

    # Seconds between background flushes
    flush_interval: float = field(
        default_factory=lambda: float(os.environ.get("TRACEFUSE_FLUSH_INTERVAL", "60"))
    )

    # Re-queues allowed per event after retryable failures
    retry_count: int = field(
        default_factory=lambda: int(os.environ.get("TRACEFUSE_RETRY_COUNT", "3"))
    )

    # Backoff (seconds) before automatic flushes resume after a failure
    retry_delay: float = field(
        default_factory=lambda: float(os.environ.get("TRACEFUSE_RETRY_DELAY", "1"))
    )

    enabled: bool = field(
        default_factory=lambda: _env_bool("TRACEFUSE_ENABLED", "true")
    )

    # Fraction of events kept, 0.0 - 1.0
    sample_rate: float = field(
        default_factory=lambda: float(os.environ.get("TRACEFUSE_SAMPLE_RATE", "1.0"))
    )

    # Extra headers sent with every ingestion request
    additional_headers: dict[str, str] = field(default_factory=dict)

    disable_background_flush: bool = field(
        default_factory=lambda: _env_bool("TRACEFUSE_DISABLE_BACKGROUND_FLUSH", "false")
    )

    def __post_init__(self):
        object.__setattr__(self, "host", self.host.rstrip("/"))
        object.__setattr__(self, "additional_headers", dict(self.additional_headers))

        if self.flush_at <= 0:
            raise ConfigError(f"flush_at must be positive, got {self.flush_at}")
        if self.flush_interval <= 0:
            raise ConfigError(f"flush_interval must be positive, got {self.flush_interval}")
        if self.retry_count < 0:
            raise ConfigError(f"retry_count must not be negative, got {self.retry_count}")
        if self.retry_delay < 0:
            raise ConfigError(f"retry_delay must not be negative, got {self.retry_delay}")
        if not 0.0 <= self.sample_rate <= 1.0:
            raise ConfigError(f"sample_rate must be between 0 and 1, got {self.sample_rate}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientConfig:
        """Create config from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str) -> ClientConfig:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> ClientConfig:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
