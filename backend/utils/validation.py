"""
SyncWatch Startup Path Validation.

Checks the watch configuration before any watching begins.
Requires Python 3.11+.
"""

import os
from pathlib import Path

from utils.config import WatchConfiguration
from utils.errors import PathValidationError, PathValidationReason


def _check_directory(path: Path, variable: str, writable: bool = False) -> None:
    try:
        path.stat()
    except FileNotFoundError:
        raise PathValidationError(PathValidationReason.NOT_FOUND, variable, path) from None
    except PermissionError:
        raise PathValidationError(PathValidationReason.ACCESS_DENIED, variable, path) from None

    if not path.is_dir():
        raise PathValidationError(PathValidationReason.NOT_A_DIRECTORY, variable, path)

    if writable and not os.access(path, os.W_OK):
        raise PathValidationError(PathValidationReason.ACCESS_DENIED, variable, path)


def validate_paths(config: WatchConfiguration) -> None:
    """
    Validate source and target directories.

    The source must exist and be a directory. The target must additionally
    be writable.

    Raises:
        PathValidationError: With the first violated condition
    """
    _check_directory(config.source_path, "SOURCE_DIR")
    _check_directory(config.target_path, "TARGET_DIR", writable=True)
