"""
SyncWatch Sync Coordinator.

Keeps sync runs from overlapping.
Requires Python 3.11+.
"""

import asyncio
from enum import Enum
from typing import Protocol

from sync.invoker import SyncResult
from utils.errors import SyncInvocationError
from utils.logger import LoggerMixin


class SyncRunner(Protocol):
    """Anything that can run one sync pass."""

    async def run(self) -> SyncResult: ...


class SyncState(str, Enum):
    """Lifecycle of the sync action."""

    IDLE = "idle"
    RUNNING = "running"
    RUNNING_WITH_PENDING_RERUN = "running_with_pending_rerun"


class SyncCoordinator(LoggerMixin):
    """
    Serializes sync runs.

    A request while a run is in flight is remembered and served by one
    extra run right after the current one completes; any further requests
    during that time collapse into the same rerun. Failures are logged and
    never stop later requests from running.
    """

    def __init__(self, runner: SyncRunner) -> None:
        self._runner = runner
        self._state = SyncState.IDLE
        self._task: asyncio.Task[None] | None = None
        self.run_count = 0
        self.failure_count = 0
        self.last_result: SyncResult | None = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is not SyncState.IDLE

    def request_sync(self) -> None:
        """Start a sync now, or queue one rerun if a sync is in flight."""
        if self._state is SyncState.IDLE:
            self._state = SyncState.RUNNING
            self._task = asyncio.create_task(self._run_loop())
        elif self._state is SyncState.RUNNING:
            self._state = SyncState.RUNNING_WITH_PENDING_RERUN
            self.log.info("sync_rerun_queued")

    async def _run_loop(self) -> None:
        try:
            while True:
                self._state = SyncState.RUNNING
                await self._run_once()
                if self._state is not SyncState.RUNNING_WITH_PENDING_RERUN:
                    break
        finally:
            self._state = SyncState.IDLE
            self._task = None

    async def _run_once(self) -> None:
        self.run_count += 1
        self.log.info("sync_started", run=self.run_count)

        try:
            result = await self._runner.run()
        except SyncInvocationError as e:
            self.failure_count += 1
            self.log.error("sync_invocation_failed", error=str(e))
            return
        except Exception as e:
            self.failure_count += 1
            self.log.exception("sync_unexpected_error", error=str(e))
            return

        self.last_result = result
        if result.stdout.strip():
            self.log.info("sync_output", output=result.stdout.rstrip())
        if result.stderr.strip():
            self.log.error("sync_stderr", output=result.stderr.rstrip())

        if result.ok:
            self.log.info(
                "sync_completed",
                exit_code=result.exit_code,
                duration_seconds=round(result.duration_seconds, 2),
            )
        else:
            self.failure_count += 1
            self.log.error(
                "sync_failed",
                exit_code=result.exit_code,
                duration_seconds=round(result.duration_seconds, 2),
            )

    async def drain(self, timeout: float) -> bool:
        """
        Wait for an in-flight sync, cancelling it after timeout seconds.

        Returns:
            True if the sync finished on its own (or none was running)
        """
        task = self._task
        if task is None:
            return True

        done, _ = await asyncio.wait({task}, timeout=timeout)
        if done:
            return True

        self.log.warning("sync_cancelled_at_shutdown", timeout=timeout)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return False
