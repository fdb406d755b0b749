"""
Tests for Ignore Patterns.

Requires Python 3.11+.
"""

from pathlib import Path

import pytest

from watcher.ignore import IgnoreMatcher

ROOT = Path("/work/project")
DEFAULTS = ["**/node_modules/**", "**/dist/**", "**/release/**", "**/.git/**", ".env"]


@pytest.fixture
def matcher() -> IgnoreMatcher:
    return IgnoreMatcher(ROOT, DEFAULTS)


@pytest.mark.parametrize(
    "relative",
    [
        "node_modules/lodash/index.js",
        "packages/ui/node_modules/react/index.js",
        "dist/app.js",
        "release/v1/setup.exe",
        ".git/HEAD",
        ".git/objects/ab/cdef",
        ".env",
        "config/.env",
    ],
)
def test_ignored(matcher: IgnoreMatcher, relative: str):
    """Test that tool artifacts and the config file are ignored."""
    assert matcher.matches(ROOT / relative)


@pytest.mark.parametrize(
    "relative",
    [
        "src/main.py",
        "distribution/notes.txt",
        "my_node_modules/file.js",
        ".env.example",
        "docs/release-notes.md",
    ],
)
def test_not_ignored(matcher: IgnoreMatcher, relative: str):
    """Test that ordinary source files pass through."""
    assert not matcher.matches(ROOT / relative)


def test_extension_pattern():
    """Test a slash-less wildcard pattern against file names at any depth."""
    matcher = IgnoreMatcher(ROOT, ["*.tmp"])

    assert matcher.matches(ROOT / "a" / "b" / "download.tmp")
    assert not matcher.matches(ROOT / "a" / "b" / "download.txt")


def test_path_outside_root():
    """Test that a path outside the root is matched on its own terms."""
    matcher = IgnoreMatcher(ROOT, ["**/.git/**"])

    assert matcher.matches(Path("/elsewhere/.git/config"))
    assert not matcher.matches(Path("/elsewhere/src/config"))


def test_patterns_deduplicated():
    """Test that duplicate patterns are stored once."""
    matcher = IgnoreMatcher(ROOT, [".env", ".env", "**/dist/**"])
    assert matcher.patterns == ["**/dist/**", ".env"]
