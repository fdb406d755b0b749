"""
SyncWatch Debouncer.

Collapses bursts of change signals into a single action invocation.
Requires Python 3.11+.
"""

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from utils.logger import LoggerMixin


@dataclass
class PendingSync:
    """The single outstanding debounce timer, if any."""

    scheduled_at: float | None = None  # event loop clock


class Debouncer(LoggerMixin):
    """
    Debounces rapid change signals.

    Every trigger() cancels the pending timer and schedules a new one
    delay_ms after this call, so a burst produces exactly one invocation
    delay_ms after its last signal. The action is fire-and-forget: its
    result is not awaited and a slow previous run does not block the next.

    Must be used from the thread running the event loop. Cancel and
    reschedule then happen without any interleaving.
    """

    def __init__(
        self,
        action: Callable[[], Any],
        delay_ms: int = 1000,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            action: Zero-argument callable (may return an awaitable)
            delay_ms: Quiet period in milliseconds before firing
            loop: Event loop for timers; defaults to the running loop
        """
        self._delay = delay_ms / 1000.0
        self._action = action
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._pending = PendingSync()
        self._tasks: set[asyncio.Task[Any]] = set()
        self.fire_count = 0

    @property
    def delay(self) -> float:
        """Cooldown in seconds."""
        return self._delay

    @property
    def pending(self) -> PendingSync:
        """Snapshot of the pending timer state."""
        return PendingSync(scheduled_at=self._pending.scheduled_at)

    @property
    def is_pending(self) -> bool:
        """Whether a timer is currently scheduled."""
        return self._handle is not None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def trigger(self) -> None:
        """Cancel any pending invocation and schedule a new one."""
        loop = self._get_loop()

        if self._handle is not None:
            self._handle.cancel()
            self.log.debug("debounce_reset")

        self._handle = loop.call_later(self._delay, self._fire)
        self._pending.scheduled_at = self._handle.when()

    def _fire(self) -> None:
        self._handle = None
        self._pending.scheduled_at = None
        self.fire_count += 1
        self.log.debug("debounce_fired", count=self.fire_count)
        self._invoke()

    def _invoke(self) -> None:
        try:
            result = self._action()
        except Exception as e:
            self.log.error("debounce_action_failed", error=str(e))
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result, loop=self._get_loop())
            # Held until done
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.log.error("debounce_action_failed", error=str(task.exception()))

    def flush(self) -> bool:
        """
        Fire immediately if an invocation is pending.

        Returns:
            True if a pending invocation was fired
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        """Drop the pending invocation without firing it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._pending.scheduled_at = None
            self.log.debug("debounce_cancelled")
