"""Gitignore-style glob matching for mapping exclude patterns.

- ``*`` and ``?`` never cross a ``/``
- a ``**`` segment matches zero or more whole path segments

``*.md`` matches ``README.md`` but not ``docs/guide.md``; ``docs/**`` matches
``docs`` itself and everything below it; ``**/*.md`` matches Markdown files at
any depth.
"""
from __future__ import annotations

import fnmatch
from typing import Iterable, Sequence


def _split(path: str) -> list[str]:
    return [p for p in path.replace("\\", "/").split("/") if p and p != "."]


def _match_segments(parts: Sequence[str], pattern: Sequence[str]) -> bool:
    if not pattern:
        return not parts
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        return any(_match_segments(parts[i:], rest) for i in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0], head) and _match_segments(parts[1:], rest)


def matches_glob(path: str, pattern: str) -> bool:
    """Return True when ``path`` matches a single exclude ``pattern``."""
    return _match_segments(_split(path), _split(pattern))


def matches_exclude(path: str, patterns: Iterable[str]) -> bool:
    """Return True when ``path`` matches any of ``patterns``."""
    return any(matches_glob(path, pattern) for pattern in patterns)


__all__ = ["matches_glob", "matches_exclude"]
