"""Logging setup for applications using the SDK."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """
    Send SDK logs to stderr.

    Args:
        level: Log level name. Defaults to TRACEFUSE_LOG_LEVEL or WARNING.
    """
    if level is None:
        level = os.getenv("TRACEFUSE_LOG_LEVEL", "WARNING")

    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("tracefuse").setLevel(level.upper())
