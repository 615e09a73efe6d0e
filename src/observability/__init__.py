"""Observability module for logging."""

from src.observability.logging import configure_logging, get_logger, resolve_level


__all__ = [
    "configure_logging",
    "get_logger",
    "resolve_level",
]
