"""
SyncWatch File Watcher Package.

Change detection and debouncing for the sync trigger.
Requires Python 3.11+.
"""

from watcher.debouncer import Debouncer, PendingSync
from watcher.file_watcher import ChangeType, FileWatcher
from watcher.ignore import IgnoreMatcher
from watcher.stability import WriteStabilizer

__all__ = [
    "ChangeType",
    "Debouncer",
    "FileWatcher",
    "IgnoreMatcher",
    "PendingSync",
    "WriteStabilizer",
]
