"""Structured logging configuration.

This module initializes structlog with a stable JSON line format.
Every module obtains its logger through ``get_logger``.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

_CONFIGURED = False


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured JSON output.
    """
    _configure_once()
    return structlog.get_logger(name)


def _configure_once() -> None:
    """Install the shared processor chain on first use."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True
