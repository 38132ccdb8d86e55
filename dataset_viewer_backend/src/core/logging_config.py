"""Structured logging configuration.

This module initializes structlog with a stable JSON format so that every
component logs snake_case events with keyword fields.
"""
from __future__ import annotations

from typing import Any

import structlog

_configured = False


def _configure() -> None:
    global _configured
    if _configured:
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        cache_logger_on_first_use=True,
    )
    _configured = True


# PUBLIC_INTERFACE
def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    _configure()
    return structlog.get_logger(name)
