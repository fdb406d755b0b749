"""
SyncWatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import asyncio
import os
import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

from sync.invoker import SyncResult
from utils.config import (
    Settings,
    SyncSettings,
    WatchConfiguration,
    WatcherSettings,
    get_settings,
    load_watch_config,
)

_ENV_NAMES = ("SOURCE_DIR", "TARGET_DIR", "FULLCOPY")
_ENV_PREFIXES = ("WATCHER_", "SYNC_", "LOG_")


def _is_ours(name: str) -> bool:
    return name in _ENV_NAMES or name.startswith(_ENV_PREFIXES)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run each test without SyncWatch variables and with fresh settings/logging."""
    for name in [n for n in os.environ if _is_ours(n)]:
        monkeypatch.delenv(name)
    get_settings.cache_clear()
    structlog.reset_defaults()

    yield

    # Drop anything a test loaded from an env file; monkeypatch restores the rest
    for name in [n for n in os.environ if _is_ours(n)]:
        del os.environ[name]
    get_settings.cache_clear()
    structlog.reset_defaults()


class FakeRunner:
    """Stands in for the external sync tool."""

    def __init__(
        self,
        exit_code: int = 0,
        delay: float = 0.0,
        error: Exception | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.exit_code = exit_code
        self.delay = delay
        self.error = error
        self.stdout = stdout
        self.stderr = stderr
        self.calls = 0
        self.active = 0
        self.max_active = 0

    async def run(self) -> SyncResult:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        if self.error is not None:
            raise self.error
        return SyncResult(
            exit_code=self.exit_code,
            stdout=self.stdout,
            stderr=self.stderr,
            duration_seconds=self.delay,
        )


async def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def fake_runner() -> type[FakeRunner]:
    """The FakeRunner class, for building runners per test."""
    return FakeRunner


@pytest.fixture
def wait_until() -> Callable[..., object]:
    """Poll a predicate on the event loop until it holds."""
    return _wait_until


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Directory to watch."""
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Sync destination."""
    path = tmp_path / "target"
    path.mkdir()
    return path


@pytest.fixture
def fast_settings(source_dir: Path, target_dir: Path) -> Settings:
    """Settings with short intervals so tests run quickly."""
    return Settings(
        source_dir=source_dir,
        target_dir=target_dir,
        watcher=WatcherSettings(
            poll_interval_ms=50,
            stability_threshold_ms=50,
            settle_poll_interval_ms=10,
        ),
        sync=SyncSettings(
            debounce_ms=100,
            command=[sys.executable, "-c", "pass"],
            shutdown_grace_seconds=1.0,
        ),
    )


@pytest.fixture
def watch_config(fast_settings: Settings) -> WatchConfiguration:
    """Watch configuration built from the fast settings."""
    return load_watch_config(fast_settings)
