"""
SyncWatch Write Stabilizer.

Holds back events for files that are still being written.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

from utils.errors import WatchError
from utils.logger import LoggerMixin


class WriteStabilizer(LoggerMixin):
    """
    Emits a file event only once the file size has stopped changing.

    Each tracked path is polled every poll_interval_ms; the event is
    released after the size has been unchanged for stability_threshold_ms.
    Further events for a path that is already settling are absorbed into
    the first one.
    """

    def __init__(
        self,
        on_stable: Callable[[Path, str], Any],
        stability_threshold_ms: int = 500,
        poll_interval_ms: int = 100,
        on_error: Callable[[WatchError], Any] | None = None,
    ) -> None:
        """
        Initialize the stabilizer.

        Args:
            on_stable: Called with (path, change_type) once the file settles
            stability_threshold_ms: How long the size must stay unchanged
            poll_interval_ms: How often the size is re-checked
            on_error: Called when a file cannot be inspected
        """
        self._on_stable = on_stable
        self._on_error = on_error
        self._threshold = stability_threshold_ms / 1000.0
        self._poll = poll_interval_ms / 1000.0
        self._pending: dict[Path, asyncio.Task[None]] = {}

    @property
    def pending_paths(self) -> list[Path]:
        """Paths currently waiting to settle."""
        return list(self._pending.keys())

    def track(self, path: Path, change_type: str) -> None:
        """Start waiting for a file to settle, unless it already is."""
        if path in self._pending:
            return
        self._pending[path] = asyncio.create_task(self._await_stable(path, change_type))

    def discard(self, path: Path) -> None:
        """Stop waiting on a path (e.g. because it was removed)."""
        task = self._pending.pop(path, None)
        if task is not None:
            task.cancel()

    async def _await_stable(self, path: Path, change_type: str) -> None:
        loop = asyncio.get_running_loop()
        last_size: int | None = None
        stable_since = loop.time()

        try:
            while True:
                try:
                    size = path.stat().st_size
                except FileNotFoundError:
                    # Gone before it settled; its removal is reported separately
                    self.log.debug("settle_file_vanished", path=str(path))
                    return
                except OSError as e:
                    self._report(WatchError(f"Cannot inspect {path}: {e}", path=path))
                    return

                now = loop.time()
                if size != last_size:
                    last_size = size
                    stable_since = now
                elif now - stable_since >= self._threshold:
                    break

                await asyncio.sleep(self._poll)
        finally:
            if self._pending.get(path) is asyncio.current_task():
                del self._pending[path]

        self._on_stable(path, change_type)

    def _report(self, error: WatchError) -> None:
        if self._on_error is not None:
            self._on_error(error)
        else:
            self.log.warning("settle_check_failed", error=str(error))

    async def close(self) -> None:
        """Cancel all settle checks and wait for them to finish."""
        tasks = list(self._pending.values())
        self._pending.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
