"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from modelhub.core.settings.loader import get_ai_settings

    settings = get_ai_settings()  # First call: loads and validates
    settings = get_ai_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the cache to force reload:
    get_ai_settings.cache_clear()
"""

from __future__ import annotations

from functools import lru_cache

from .ai import AISettings
from .logs import LoggingSettings


@lru_cache(maxsize=1)
def get_ai_settings() -> AISettings:
    """Get cached AI provider settings.

    Returns:
        Validated and frozen AISettings instance.
    """
    return AISettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear every settings cache (for tests that patch the environment)."""
    get_ai_settings.cache_clear()
    get_logging_settings.cache_clear()
