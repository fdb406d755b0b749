"""
SyncWatch Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

import re
import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from utils.errors import ConfigurationError

DEFAULT_ENV_FILE = ".env"

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
load_dotenv(DEFAULT_ENV_FILE)

_QUOTED = re.compile(r"""^["'](.+)["']$""")
_TRUTHY = {"true", "1", "yes", "on"}


def load_env_file(path: Path) -> bool:
    """
    Load an explicit env file, overriding values already in the environment.

    Clears the cached settings so the next get_settings() sees the new values.

    Returns:
        True if at least one variable was set
    """
    loaded = load_dotenv(path, override=True)
    get_settings.cache_clear()
    return loaded


def _split_list(v: str | list[str]) -> list[str]:
    """Parse a comma-separated string or pass a list through."""
    if isinstance(v, str):
        return [p.strip() for p in v.split(",") if p.strip()]
    return v


def _default_sync_command() -> list[str]:
    if sys.platform == "win32":
        return ["robocopy", "{source}", "{target}", "/E"]
    return ["rsync", "-a", "{source}/", "{target}/"]


def _default_full_copy_args() -> list[str]:
    if sys.platform == "win32":
        return ["/MIR"]
    return ["--delete"]


def _default_max_success_exit_code() -> int:
    # robocopy reports copied/extra files with exit codes 1-3
    return 3 if sys.platform == "win32" else 0


class WatcherSettings(BaseSettings):
    """File watcher configuration settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    use_polling: bool = Field(default=True, description="Poll instead of native notifications")
    poll_interval_ms: int = Field(default=1000, ge=10, le=60000)
    stability_threshold_ms: int = Field(default=500, ge=0, le=60000)
    settle_poll_interval_ms: int = Field(default=100, ge=10, le=10000)

    ignore_patterns: Annotated[list[str], NoDecode] = Field(
        default=[
            "**/node_modules/**",
            "**/dist/**",
            "**/release/**",
            "**/.git/**",
        ],
        description="Glob patterns to ignore while watching",
    )

    @field_validator("ignore_patterns", mode="before")
    @classmethod
    def parse_ignore_patterns(cls, v: str | list[str]) -> list[str]:
        """Parse ignore patterns from comma-separated string or list."""
        return _split_list(v)


class SyncSettings(BaseSettings):
    """External synchronization tool settings."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    debounce_ms: int = Field(default=1000, ge=0, le=600000)
    command: Annotated[list[str], NoDecode] = Field(
        default_factory=_default_sync_command,
        description="Sync command argv; {source} and {target} are substituted",
    )
    full_copy_args: Annotated[list[str], NoDecode] = Field(
        default_factory=_default_full_copy_args,
        description="Extra arguments appended in full copy mode",
    )
    max_success_exit_code: int = Field(default_factory=_default_max_success_exit_code, ge=0)
    shutdown_grace_seconds: float = Field(default=5.0, ge=0.0)

    @field_validator("command", "full_copy_args", mode="before")
    @classmethod
    def parse_args(cls, v: str | list[str]) -> list[str]:
        """Parse argv lists from comma-separated string or list."""
        return _split_list(v)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "json" or "console"


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="SyncWatch")
    app_version: str = Field(default="0.1.0")

    # Watch configuration
    source_dir: Path | None = Field(default=None, description="Directory to watch")
    target_dir: Path | None = Field(default=None, description="Sync destination")
    fullcopy: bool = Field(default=False, description="Mirror mode for the sync tool")
    env_file_name: str = Field(default=DEFAULT_ENV_FILE)

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("source_dir", "target_dir", mode="before")
    @classmethod
    def strip_quotes(cls, v: str | Path | None) -> str | Path | None:
        """Trim whitespace and one pair of surrounding quotes."""
        if isinstance(v, str):
            v = _QUOTED.sub(r"\1", v.strip())
            return v or None
        return v

    @field_validator("fullcopy", mode="before")
    @classmethod
    def parse_fullcopy(cls, v: str | bool | None) -> bool:
        """Anything other than a recognized truthy string is false."""
        if isinstance(v, str):
            return v.strip().lower() in _TRUTHY
        return bool(v)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings for performance.
    """
    return Settings()


@dataclass(frozen=True)
class WatchConfiguration:
    """Validated, immutable description of what to watch and where to sync."""

    source_path: Path
    target_path: Path
    full_copy: bool
    ignore_patterns: frozenset[str]


def load_watch_config(settings: Settings) -> WatchConfiguration:
    """
    Build the watch configuration from loaded settings.

    Raises:
        ConfigurationError: If TARGET_DIR or SOURCE_DIR is not set
    """
    if settings.target_dir is None:
        raise ConfigurationError("TARGET_DIR is not set", variable="TARGET_DIR")
    if settings.source_dir is None:
        raise ConfigurationError("SOURCE_DIR is not set", variable="SOURCE_DIR")

    patterns = set(settings.watcher.ignore_patterns)
    # Never react to edits of our own configuration file
    patterns.add(settings.env_file_name)

    return WatchConfiguration(
        source_path=settings.source_dir,
        target_path=settings.target_dir,
        full_copy=settings.fullcopy,
        ignore_patterns=frozenset(patterns),
    )
