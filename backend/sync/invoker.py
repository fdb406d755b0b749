"""
SyncWatch Sync Invoker.

Runs the external synchronization tool as a subprocess.
Requires Python 3.11+.
"""

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path

from utils.config import SyncSettings, WatchConfiguration
from utils.errors import SyncInvocationError
from utils.logger import LoggerMixin


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one sync tool run."""

    exit_code: int
    stdout: str
    stderr: str
    duration_seconds: float
    max_success_exit_code: int = 0

    @property
    def ok(self) -> bool:
        """Whether the exit code is within the tool's success range."""
        return 0 <= self.exit_code <= self.max_success_exit_code


class SyncInvoker(LoggerMixin):
    """
    Invokes the external sync tool for one source/target pair.

    The command is an argv template; "{source}" and "{target}" inside any
    argument are replaced with the configured paths. In full copy mode the
    full_copy_args are appended.
    """

    def __init__(
        self,
        source_path: Path,
        target_path: Path,
        full_copy: bool,
        command: list[str],
        full_copy_args: list[str] | None = None,
        max_success_exit_code: int = 0,
    ) -> None:
        if not command:
            raise ValueError("Sync command must not be empty")
        self._source_path = source_path
        self._target_path = target_path
        self._full_copy = full_copy
        self._command = list(command)
        self._full_copy_args = list(full_copy_args or [])
        self._max_success_exit_code = max_success_exit_code

    @classmethod
    def from_config(cls, config: WatchConfiguration, settings: SyncSettings) -> "SyncInvoker":
        """Build an invoker from the watch configuration and sync settings."""
        return cls(
            source_path=config.source_path,
            target_path=config.target_path,
            full_copy=config.full_copy,
            command=settings.command,
            full_copy_args=settings.full_copy_args,
            max_success_exit_code=settings.max_success_exit_code,
        )

    def build_argv(self) -> list[str]:
        """Return the concrete argv for this source/target pair."""
        source = str(self._source_path)
        target = str(self._target_path)
        argv = [
            arg.replace("{source}", source).replace("{target}", target)
            for arg in self._command
        ]
        if self._full_copy:
            argv.extend(self._full_copy_args)
        return argv

    async def run(self) -> SyncResult:
        """
        Run the sync tool to completion.

        Returns:
            SyncResult with the exit code and captured output

        Raises:
            SyncInvocationError: If the tool could not be launched
        """
        argv = self.build_argv()
        start = time.perf_counter()

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SyncInvocationError(f"Cannot run {argv[0]}: {e}") from e

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            self.log.warning("sync_process_killed", pid=process.pid)
            raise

        return SyncResult(
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_seconds=time.perf_counter() - start,
            max_success_exit_code=self._max_success_exit_code,
        )
