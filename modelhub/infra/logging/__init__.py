"""Logging setup for modelhub.

Usage:
    from modelhub.infra.logging import setup_logging

    setup_logging()  # reads LOG_* environment variables once
"""

from __future__ import annotations

from .config import configure_logging, reset_logging_state, setup_logging
from .formatters import JSONFormatter

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "reset_logging_state",
    "setup_logging",
]
