"""Exceptions raised by the SDK."""


class TracefuseError(Exception):
    """Base exception for tracefuse errors."""
    pass


class ConfigError(TracefuseError, ValueError):
    """Invalid client configuration."""
    pass
