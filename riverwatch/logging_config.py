"""Logging setup for the command-line runner."""

from __future__ import annotations

import logging
import os

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    *,
    level: str | None = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
) -> logging.Logger:
    """Configure root logging and return the package logger.

    Args:
        level: Optional explicit log level. Falls back to the
            ``RIVERWATCH_LOG_LEVEL`` env var or INFO when not provided.
        format: Log format string.
        datefmt: Date format string.

    Returns:
        The ``riverwatch`` logger.
    """
    raw_level = level if level is not None else os.getenv("RIVERWATCH_LOG_LEVEL")
    resolved_level = (raw_level or "INFO").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    app_logger = logging.getLogger("riverwatch")
    app_logger.setLevel(resolved_level)
    app_logger.debug("Logging configured at %s", resolved_level)
    return app_logger
