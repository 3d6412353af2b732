"""Logging configuration setup.

Uses ``logging.config.dictConfig`` to attach handlers to the root logger;
package loggers (``logging.getLogger(__name__)``) propagate up to it.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from modelhub.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False

# Vendor SDK and transport loggers that are chatty at DEBUG/INFO.
LIBRARY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "openai", "anthropic")


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from modelhub.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = {**settings_obj.to_logging_kwargs(), **configure_kwargs}
    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    console_enabled: bool = True,
    log_file: str | Path | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    service_name: str = "modelhub",
    library_log_level: str = "WARNING",
) -> dict[str, Any]:
    """Configure the root logger via dictConfig.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Emit JSON Lines instead of human-readable text.
        console_enabled: Attach a stderr handler.
        log_file: Path to a rotating log file. None disables file logging.
        max_bytes: Maximum log file size before rotation.
        backup_count: Number of rotated log files to keep.
        service_name: Static ``service`` field added to JSON records.
        library_log_level: Level for HTTP and vendor SDK loggers.

    Returns:
        The dictConfig mapping that was applied.

    Example:
        from modelhub.core.settings import get_logging_settings
        configure_logging(**get_logging_settings().to_logging_kwargs())
    """
    formatter_name = "json" if json_logs else "text"
    formatters: dict[str, Any] = {
        "json": {
            "()": "modelhub.infra.logging.formatters.JSONFormatter",
            "static": {"service": service_name},
        },
        "text": {
            "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    }

    handlers: dict[str, Any] = {}
    if console_enabled:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": formatter_name,
            "stream": "ext://sys.stderr",
        }
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            # Files are always machine-read
            "formatter": "json",
            "filename": str(path),
            "maxBytes": max_bytes,
            "backupCount": backup_count,
            "encoding": "utf-8",
        }

    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "root": {"level": log_level, "handlers": list(handlers)},
        "loggers": {
            name: {"level": library_log_level, "propagate": True}
            for name in LIBRARY_LOGGERS
        },
    }
    logging.config.dictConfig(config)
    logger.debug(
        "Logging configured",
        extra={"log_level": log_level, "json_logs": json_logs, "handlers": list(handlers)},
    )
    return config


def reset_logging_state() -> None:
    """Allow ``setup_logging`` to run again (tests only)."""
    global _LOGGING_INITIALIZED
    _LOGGING_INITIALIZED = False
