"""
SyncWatch Main Application.

Wires the file watcher, debouncer and sync coordinator together, and
handles startup validation and graceful shutdown.
Requires Python 3.11+.
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from pydantic import ValidationError

from sync.coordinator import SyncCoordinator, SyncRunner
from sync.invoker import SyncInvoker
from utils.config import (
    Settings,
    WatchConfiguration,
    get_settings,
    load_env_file,
    load_watch_config,
)
from utils.errors import ConfigurationError, PathValidationError, WatchError
from utils.logger import LoggerMixin, configure_logging, get_logger
from utils.validation import validate_paths
from watcher.debouncer import Debouncer
from watcher.file_watcher import ChangeType, FileWatcher

logger = get_logger("syncwatch")

_CHANGE_EVENTS = {
    ChangeType.ADDED: "file_added",
    ChangeType.MODIFIED: "file_modified",
    ChangeType.REMOVED: "file_removed",
}


class SyncService(LoggerMixin):
    """
    Watches the source tree and keeps the target in sync.

    File changes go through the debouncer; the initial scan triggers a
    sync directly so a baseline is established without waiting for the
    first change.
    """

    def __init__(
        self,
        config: WatchConfiguration,
        settings: Settings,
        runner: SyncRunner | None = None,
    ) -> None:
        self._config = config
        self._settings = settings

        self.coordinator = SyncCoordinator(
            runner or SyncInvoker.from_config(config, settings.sync)
        )
        self.debouncer = Debouncer(
            self.coordinator.request_sync,
            delay_ms=settings.sync.debounce_ms,
        )
        self.watcher = FileWatcher(
            root_path=config.source_path,
            on_change=self._on_change,
            on_ready=self._on_ready,
            on_error=self._on_error,
            ignore_patterns=config.ignore_patterns,
            use_polling=settings.watcher.use_polling,
            poll_interval_ms=settings.watcher.poll_interval_ms,
            stability_threshold_ms=settings.watcher.stability_threshold_ms,
            settle_poll_interval_ms=settings.watcher.settle_poll_interval_ms,
        )

    def _on_change(self, path: Path, change_type: ChangeType) -> None:
        self.log.info(_CHANGE_EVENTS[change_type], path=str(path))
        self.debouncer.trigger()

    def _on_ready(self) -> None:
        self.log.info("initial_scan_complete")
        self.coordinator.request_sync()

    def _on_error(self, error: WatchError) -> None:
        self.log.error(
            "watcher_error",
            path=str(error.path) if error.path else None,
            error=str(error),
            degraded=self.watcher.is_degraded,
        )

    async def run(self, stop_event: asyncio.Event) -> int:
        """
        Watch until stop_event is set, then shut down.

        Returns:
            Process exit status
        """
        self.log.info("initializing_file_watcher")
        self.log.info(
            "watch_configuration",
            source=str(self._config.source_path),
            destination=str(self._config.target_path),
            full_copy="enabled" if self._config.full_copy else "disabled",
        )
        self.log.info("ignoring_patterns", patterns=self.watcher.ignore_patterns)

        await self.watcher.start()
        await stop_event.wait()
        await self.shutdown()
        return 0

    async def shutdown(self) -> None:
        """Cancel the pending sync, release the watch, drain the in-flight sync."""
        self.log.info("closing_file_watcher")
        self.debouncer.cancel()
        await self.watcher.close()
        await self.coordinator.drain(self._settings.sync.shutdown_grace_seconds)
        self.log.info("file_watcher_closed")


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event
) -> list[signal.Signals]:
    """Route SIGINT/SIGTERM to stop_event; returns the signals bound on the loop."""
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
            installed.append(sig)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop_event.set))
    return installed


async def run_service(
    config: WatchConfiguration,
    settings: Settings,
    runner: SyncRunner | None = None,
) -> int:
    """Run the sync service until interrupted."""
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    installed = _install_signal_handlers(loop, stop_event)
    try:
        service = SyncService(config, settings, runner=runner)
        return await service.run(stop_event)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="syncwatch",
        description="Watch SOURCE_DIR and mirror changes into TARGET_DIR",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Env file to load SOURCE_DIR, TARGET_DIR and FULLCOPY from (default: ./.env)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides LOG_LEVEL)",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["console", "json"],
        help="Log output format (overrides LOG_FORMAT)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Settings are not loaded yet; startup errors still go to stderr
    configure_logging(
        level=args.log_level or "INFO",
        fmt=args.log_format or "console",
        cache_loggers=False,
    )

    if args.env_file is not None:
        if not args.env_file.is_file():
            logger.error("env_file_not_found", path=str(args.env_file))
            return 1
        load_env_file(args.env_file)

    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error("invalid_settings", error=str(e))
        return 1

    if args.env_file is not None:
        settings = settings.model_copy(update={"env_file_name": args.env_file.name})

    configure_logging(level=args.log_level, fmt=args.log_format, settings=settings)

    try:
        config = load_watch_config(settings)
        validate_paths(config)
    except ConfigurationError as e:
        logger.error("configuration_error", variable=e.variable, error=str(e))
        return 1
    except PathValidationError as e:
        logger.error(
            "path_validation_failed",
            reason=e.reason.value,
            variable=e.variable,
            path=str(e.path),
            error=str(e),
        )
        return 1

    try:
        return asyncio.run(run_service(config, settings))
    except WatchError as e:
        logger.error(
            "watch_start_failed",
            path=str(e.path) if e.path else None,
            error=str(e),
        )
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
