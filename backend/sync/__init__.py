"""
SyncWatch Sync Package.

External sync tool invocation and run serialization.
Requires Python 3.11+.
"""

from sync.coordinator import SyncCoordinator, SyncRunner, SyncState
from sync.invoker import SyncInvoker, SyncResult

__all__ = [
    "SyncCoordinator",
    "SyncInvoker",
    "SyncResult",
    "SyncRunner",
    "SyncState",
]
