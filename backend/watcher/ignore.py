"""
SyncWatch Ignore Patterns.

Precompiled glob matchers for paths the watcher must not react to.
Requires Python 3.11+.
"""

import fnmatch
import re
from collections.abc import Iterable
from pathlib import Path


class IgnoreMatcher:
    """
    Matches paths under a root against glob patterns.

    Patterns are matched against the root-relative path with a leading
    slash, so "**/dist/**" matches "dist/app.js" as well as
    "pkg/dist/app.js". Patterns without a slash also match the bare
    file name, so ".env" matches the config file at any depth.
    """

    def __init__(self, root: Path, patterns: Iterable[str]) -> None:
        self._root = Path(root)
        self._patterns = sorted(set(patterns))
        self._path_regexes: list[re.Pattern[str]] = []
        self._name_regexes: list[re.Pattern[str]] = []

        for pattern in self._patterns:
            regex = re.compile(fnmatch.translate(pattern))
            if "/" in pattern:
                self._path_regexes.append(regex)
            else:
                self._name_regexes.append(regex)

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def _relative(self, path: Path) -> str | None:
        try:
            rel = path.relative_to(self._root)
        except ValueError:
            return None
        return "/" + rel.as_posix()

    def matches(self, path: str | Path) -> bool:
        """Return True if the path should be ignored."""
        path = Path(path)
        rel = self._relative(path)
        if rel is None:
            rel = "/" + path.as_posix().lstrip("/")

        if any(regex.match(rel) for regex in self._path_regexes):
            return True
        return any(regex.match(path.name) for regex in self._name_regexes)
