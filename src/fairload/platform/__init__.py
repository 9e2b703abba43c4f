"""Platform concerns shared across the engine (logging)."""

from fairload.platform.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
