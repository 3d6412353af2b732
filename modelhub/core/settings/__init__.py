"""Pydantic Settings v2 configuration.

Import settings via cached loaders:
    from modelhub.core.settings import get_ai_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
"""

from __future__ import annotations

from .ai import AISettings
from .loader import clear_all_caches, get_ai_settings, get_logging_settings
from .logs import LoggingSettings

__all__ = [
    "AISettings",
    "LoggingSettings",
    "clear_all_caches",
    "get_ai_settings",
    "get_logging_settings",
]
