"""Structured logging configuration.

This module initializes structlog with a stable JSON format on stderr,
so command output on stdout stays machine readable.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL


def configure_logging(log_level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog processors and level filtering.

    Args:
        log_level: Minimum level name, e.g. ``info``.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Structlog is configured with the default level on first use unless
    the caller already configured it.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger emitting structured events.
    """
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)
