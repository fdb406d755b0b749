"""
Tests for the Sync Coordinator.

Requires Python 3.11+.
"""

import asyncio

from structlog.testing import capture_logs

from sync.coordinator import SyncCoordinator, SyncState
from utils.errors import SyncInvocationError


class TestSyncCoordinator:
    """Test cases for SyncCoordinator."""

    async def test_single_request_runs_once(self, fake_runner, wait_until):
        """Test that one request produces one run and returns to idle."""
        runner = fake_runner()
        coordinator = SyncCoordinator(runner)

        coordinator.request_sync()
        assert coordinator.state is SyncState.RUNNING
        await wait_until(lambda: not coordinator.is_running)

        assert runner.calls == 1
        assert coordinator.state is SyncState.IDLE
        assert coordinator.last_result is not None

    async def test_requests_during_run_collapse_into_one_rerun(self, fake_runner, wait_until):
        """Test that overlapping requests never run concurrently and rerun once."""
        runner = fake_runner(delay=0.1)
        coordinator = SyncCoordinator(runner)

        coordinator.request_sync()
        await asyncio.sleep(0.02)
        coordinator.request_sync()
        assert coordinator.state is SyncState.RUNNING_WITH_PENDING_RERUN
        coordinator.request_sync()
        coordinator.request_sync()

        await wait_until(lambda: not coordinator.is_running)

        assert runner.calls == 2
        assert runner.max_active == 1

    async def test_failed_sync_is_logged_and_later_requests_run(self, fake_runner, wait_until):
        """Test that a non-zero exit is an error log, not the end of syncing."""
        runner = fake_runner(exit_code=1, stderr="robocopy: access denied\n")
        coordinator = SyncCoordinator(runner)

        with capture_logs() as logs:
            coordinator.request_sync()
            await wait_until(lambda: not coordinator.is_running)

        events = {(entry["event"], entry["log_level"]) for entry in logs}
        assert ("sync_failed", "error") in events
        assert ("sync_stderr", "error") in events
        assert coordinator.failure_count == 1

        coordinator.request_sync()
        await wait_until(lambda: not coordinator.is_running)
        assert runner.calls == 2

    async def test_launch_failure_is_logged(self, fake_runner, wait_until):
        """Test that a tool that cannot start is logged and does not stop later runs."""
        runner = fake_runner(error=SyncInvocationError("Cannot run rsync"))
        coordinator = SyncCoordinator(runner)

        with capture_logs() as logs:
            coordinator.request_sync()
            await wait_until(lambda: not coordinator.is_running)

        assert any(entry["event"] == "sync_invocation_failed" for entry in logs)

        runner.error = None
        coordinator.request_sync()
        await wait_until(lambda: not coordinator.is_running)
        assert coordinator.failure_count == 1
        assert runner.calls == 2

    async def test_successful_sync_logs_output(self, fake_runner, wait_until):
        """Test that stdout and completion are logged."""
        runner = fake_runner(stdout="copied 3 files\n")
        coordinator = SyncCoordinator(runner)

        with capture_logs() as logs:
            coordinator.request_sync()
            await wait_until(lambda: not coordinator.is_running)

        events = [entry["event"] for entry in logs]
        assert events == ["sync_started", "sync_output", "sync_completed"]

    async def test_drain_waits_for_quick_sync(self, fake_runner):
        """Test that drain lets a short run finish."""
        runner = fake_runner(delay=0.05)
        coordinator = SyncCoordinator(runner)

        coordinator.request_sync()
        assert await coordinator.drain(timeout=1.0) is True
        assert coordinator.last_result is not None

    async def test_drain_cancels_slow_sync(self, fake_runner):
        """Test that drain gives up on a long run after the timeout."""
        runner = fake_runner(delay=10.0)
        coordinator = SyncCoordinator(runner)

        coordinator.request_sync()
        assert await coordinator.drain(timeout=0.05) is False
        assert coordinator.state is SyncState.IDLE
        assert runner.active == 0

    async def test_drain_without_sync(self, fake_runner):
        """Test that drain returns immediately when idle."""
        coordinator = SyncCoordinator(fake_runner())
        assert await coordinator.drain(timeout=0.0) is True
