"""Logging configuration package."""

from .main import PlayerContext, configure_logging, get_context_logger


__all__ = [
    "configure_logging",
    "get_context_logger",
    "PlayerContext",
]
