"""
SyncWatch Utilities Package.

Configuration, logging, errors and startup validation.
Requires Python 3.11+.
"""

from utils.config import Settings, WatchConfiguration, get_settings, load_watch_config
from utils.errors import (
    ConfigurationError,
    PathValidationError,
    PathValidationReason,
    SyncInvocationError,
    SyncWatchError,
    WatchError,
)
from utils.logger import configure_logging, get_logger, logger, LoggerMixin
from utils.validation import validate_paths

__all__ = [
    "Settings",
    "WatchConfiguration",
    "get_settings",
    "load_watch_config",
    "configure_logging",
    "get_logger",
    "logger",
    "LoggerMixin",
    "validate_paths",
    # Errors
    "SyncWatchError",
    "ConfigurationError",
    "PathValidationError",
    "PathValidationReason",
    "WatchError",
    "SyncInvocationError",
]
