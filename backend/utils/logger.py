"""
SyncWatch Structured Logging Module.

Provides consistent, structured logging throughout the application.
Requires Python 3.11+.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from utils.config import Settings, get_settings


def _app_context(app: str, version: str) -> Processor:
    """Build a processor that adds application context to all log entries."""

    def add_app_context(
        logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["app"] = app
        event_dict["version"] = version
        return event_dict

    return add_app_context


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    settings: Settings | None = None,
    cache_loggers: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Call this once at application startup. Explicit arguments override
    the LOG_LEVEL / LOG_FORMAT settings; when both are given, settings
    are not loaded at all, so startup errors about the settings
    themselves can still be logged to stderr.
    """
    if settings is None and (level is None or fmt is None):
        settings = get_settings()

    if settings is not None:
        level = level or settings.logging.level
        fmt = fmt or settings.logging.format
        app_context = _app_context(settings.app_name, settings.app_version)
    else:
        fields = Settings.model_fields
        app_context = _app_context(fields["app_name"].default, fields["app_version"].default)
    level = level.upper()

    # Common processors for all output formats
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if fmt == "json":
        processors: list[Processor] = [
            *shared_processors,
            app_context,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Colored console output for interactive use
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=cache_loggers,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level),
    )

    # Suppress noisy loggers
    logging.getLogger("watchdog").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Pre-configured logger for quick imports
logger = get_logger("syncwatch")


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    Usage:
        class MyClass(LoggerMixin):
            def my_method(self):
                self.log.info("doing something", key="value")
    """

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        """Get logger bound to this class name."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
