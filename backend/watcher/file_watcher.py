"""
SyncWatch File Watcher.

Recursive directory monitoring using watchdog, with polling support for
mounts where native notifications are unreliable.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from watchdog.events import (
    DirDeletedEvent,
    DirMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from utils.errors import WatchError
from utils.logger import LoggerMixin
from watcher.ignore import IgnoreMatcher
from watcher.stability import WriteStabilizer


class ChangeType(str, Enum):
    """Kinds of change the watcher reports."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


class SyncEventHandler(FileSystemEventHandler, LoggerMixin):
    """
    Receives watchdog events on the observer thread.

    Events are classified and forwarded to the event loop unchanged in
    order; all filtering beyond directory/ignore checks happens there.
    """

    def __init__(
        self,
        root_path: Path,
        ignore: IgnoreMatcher,
        loop: asyncio.AbstractEventLoop,
        dispatch: Callable[[Path, ChangeType], None],
        on_root_deleted: Callable[[], None],
    ) -> None:
        super().__init__()
        self._root_path = root_path
        self._ignore = ignore
        self._loop = loop
        self._dispatch = dispatch
        self._on_root_deleted = on_root_deleted

    def _post(self, path: str | bytes, change_type: ChangeType) -> None:
        path = Path(path.decode() if isinstance(path, bytes) else path)
        if self._ignore.matches(path):
            return
        self.log.debug("fs_event", path=str(path), change=change_type.value)
        self._loop.call_soon_threadsafe(self._dispatch, path, change_type)

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation."""
        if not event.is_directory:
            self._post(event.src_path, ChangeType.ADDED)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification."""
        if not event.is_directory:
            self._post(event.src_path, ChangeType.MODIFIED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file deletion, and loss of the watch root."""
        if isinstance(event, DirDeletedEvent):
            if Path(str(event.src_path)) == self._root_path:
                self._loop.call_soon_threadsafe(self._on_root_deleted)
            return
        self._post(event.src_path, ChangeType.REMOVED)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle file move/rename as removal plus addition."""
        if isinstance(event, DirMovedEvent):
            return
        self._post(event.src_path, ChangeType.REMOVED)
        self._post(event.dest_path, ChangeType.ADDED)


class FileWatcher(LoggerMixin):
    """
    Watches a directory tree and reports settled file changes.

    Signals:
        on_change(path, change_type): a qualifying file event
        on_ready(): initial scan complete, emitted once after start()
        on_error(WatchError): non-fatal watch failure
    """

    def __init__(
        self,
        root_path: Path,
        on_change: Callable[[Path, ChangeType], Any],
        on_ready: Callable[[], Any] | None = None,
        on_error: Callable[[WatchError], Any] | None = None,
        ignore_patterns: list[str] | frozenset[str] | None = None,
        use_polling: bool = True,
        poll_interval_ms: int = 1000,
        stability_threshold_ms: int = 500,
        settle_poll_interval_ms: int = 100,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            root_path: Root directory to watch recursively
            on_change: Callback for each settled change
            on_ready: Callback once the initial scan is complete
            on_error: Callback for non-fatal watch errors
            ignore_patterns: Glob patterns to ignore
            use_polling: Poll the tree instead of using native notifications
            poll_interval_ms: Polling interval
            stability_threshold_ms: Size must be unchanged this long
            settle_poll_interval_ms: How often the size is re-checked
        """
        self._root_path = Path(root_path)
        self._on_change = on_change
        self._on_ready = on_ready
        self._on_error = on_error
        self._ignore = IgnoreMatcher(self._root_path, ignore_patterns or [])
        self._use_polling = use_polling
        self._poll_interval = poll_interval_ms / 1000.0

        self._stabilizer = WriteStabilizer(
            on_stable=self._emit,
            stability_threshold_ms=stability_threshold_ms,
            poll_interval_ms=settle_poll_interval_ms,
            on_error=self._report_error,
        )

        self._observer: BaseObserver | None = None
        self._running = False
        self._degraded = False

    @property
    def ignore_patterns(self) -> list[str]:
        return self._ignore.patterns

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    @property
    def is_degraded(self) -> bool:
        """True once the watch root itself has been lost."""
        return self._degraded

    def _create_observer(self) -> BaseObserver:
        if self._use_polling:
            return PollingObserver(timeout=self._poll_interval)
        return Observer()

    async def start(self) -> None:
        """
        Start watching and emit the ready signal.

        The initial directory snapshot is taken while the observer starts,
        so ready is emitted only after start() of the observer returns.
        """
        if self._running:
            return

        loop = asyncio.get_running_loop()
        handler = SyncEventHandler(
            root_path=self._root_path,
            ignore=self._ignore,
            loop=loop,
            dispatch=self._dispatch,
            on_root_deleted=self._handle_root_deleted,
        )

        observer = self._create_observer()
        try:
            observer.schedule(handler, str(self._root_path), recursive=True)
            await loop.run_in_executor(None, observer.start)
        except OSError as e:
            self._release_failed(observer)
            raise WatchError(f"Cannot watch {self._root_path}: {e}", path=self._root_path) from e

        self._observer = observer
        self._running = True

        self.log.info(
            "file_watcher_started",
            path=str(self._root_path),
            polling=self._use_polling,
        )

        if self._on_ready is not None:
            self._on_ready()

    def _release_failed(self, observer: BaseObserver) -> None:
        # Emitters that did start are stopped and joined by unscheduling
        try:
            observer.unschedule_all()
        except Exception as e:
            self.log.warning("observer_release_failed", error=str(e))

    def _dispatch(self, path: Path, change_type: ChangeType) -> None:
        if not self._running:
            return
        if change_type is ChangeType.REMOVED:
            self._stabilizer.discard(path)
            self._emit(path, change_type)
        else:
            self._stabilizer.track(path, change_type)

    def _emit(self, path: Path, change_type: ChangeType) -> None:
        if not self._running:
            return
        try:
            self._on_change(path, change_type)
        except Exception as e:
            self.log.error("change_callback_failed", path=str(path), error=str(e))

    def _handle_root_deleted(self) -> None:
        self._degraded = True
        self._report_error(WatchError(f"Watch root is gone: {self._root_path}", path=self._root_path))

    def _report_error(self, error: WatchError) -> None:
        if self._on_error is not None:
            self._on_error(error)
        else:
            self.log.error("watcher_error", error=str(error))

    async def close(self) -> None:
        """Stop watching and release the observer. Returns once released."""
        if not self._running:
            return
        self._running = False

        await self._stabilizer.close()

        if self._observer is not None:
            observer = self._observer
            self._observer = None
            observer.stop()
            await asyncio.get_running_loop().run_in_executor(None, observer.join)

        self.log.info("file_watcher_stopped")
