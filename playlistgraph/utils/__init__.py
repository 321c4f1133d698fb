"""Utility modules for playlistgraph.

- **errors** -- Domain-specific exception hierarchy rooted at
  PlaylistGraphError; each build stage raises its own subclass so callers
  can apply per-type failure policy.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from playlistgraph.utils.errors import (
    ConfigurationError,
    InvalidArgumentError,
    MalformedInputError,
    MissingFieldError,
    PlaylistGraphError,
    SinkWriteError,
    WeightOverflowError,
)
from playlistgraph.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "InvalidArgumentError",
    "MalformedInputError",
    "MissingFieldError",
    "PlaylistGraphError",
    "SinkWriteError",
    "WeightOverflowError",
    "configure_logging",
    "get_logger",
]
