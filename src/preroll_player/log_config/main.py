"""Logging configuration and utilities."""

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog for the player.

    Args:
        level: Minimum log level name (DEBUG, INFO, ...)
        json_output: Render JSON lines instead of the console renderer
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_context_logger(name: str) -> structlog.BoundLogger:
    """Get a context-aware logger.

    Args:
        name: Logger name

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


class PlayerContext:
    """Context manager binding process-level fields into the logging context.

    Per-player fields (video_src, quality, player_state) live on each
    player's own bound logger, not here.
    """

    def __init__(self, **context: Any):
        """Initialize with context variables.

        Args:
            **context: Context key-value pairs
        """
        self.context = context

    def __enter__(self):
        """Enter context."""
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context."""
        structlog.contextvars.unbind_contextvars(*self.context.keys())


__all__ = [
    "configure_logging",
    "get_context_logger",
    "PlayerContext",
]
