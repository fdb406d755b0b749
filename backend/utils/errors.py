"""
SyncWatch Error Types.

Exception hierarchy shared by configuration, watching and syncing.
Requires Python 3.11+.
"""

from enum import Enum
from pathlib import Path


class SyncWatchError(Exception):
    """Base class for all SyncWatch errors."""


class ConfigurationError(SyncWatchError):
    """A required setting is missing or invalid. Fatal at startup."""

    def __init__(self, message: str, variable: str | None = None) -> None:
        super().__init__(message)
        self.variable = variable


class PathValidationReason(str, Enum):
    """Why a configured path was rejected."""

    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    NOT_A_DIRECTORY = "not_a_directory"


class PathValidationError(SyncWatchError):
    """A configured directory failed startup validation. Fatal at startup."""

    def __init__(self, reason: PathValidationReason, variable: str, path: Path) -> None:
        self.reason = reason
        self.variable = variable
        self.path = path
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.reason is PathValidationReason.NOT_FOUND:
            return f"Path does not exist: {self.path}"
        if self.reason is PathValidationReason.ACCESS_DENIED:
            return f"Access denied: {self.path}"
        return f"{self.variable} is not a directory: {self.path}"


class WatchError(SyncWatchError):
    """The filesystem watch failed for a path. Fatal only when raised from start()."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class SyncInvocationError(SyncWatchError):
    """The external sync tool could not be launched. Non-fatal."""
