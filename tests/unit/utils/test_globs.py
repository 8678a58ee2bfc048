"""Tests for exclude glob matching."""
from __future__ import annotations

import pytest

from gitvendor.core.utils.globs import matches_exclude, matches_glob


@pytest.mark.parametrize(
    "path,pattern,expected",
    [
        ("README.md", "*.md", True),
        ("main.go", "*.md", False),
        ("docs/guide.md", "*.md", False),
        (".gitignore", ".gitignore", True),
        ("a/b.txt", "a/?.txt", True),
        ("a/bc.txt", "a/?.txt", False),
    ],
)
def test_single_star_stays_within_a_segment(path: str, pattern: str, expected: bool) -> None:
    assert matches_glob(path, pattern) is expected


@pytest.mark.parametrize(
    "path,pattern,expected",
    [
        (".claude/settings.json", ".claude/**", True),
        (".claude/rules/foo.md", ".claude/**", True),
        (".claude", ".claude/**", True),
        ("src/main.go", ".claude/**", False),
        ("docs/README.md", "docs/internal/**", False),
        ("README.md", "**/*.md", True),
        ("docs/deep/guide.md", "**/*.md", True),
        ("docs/deep/guide.txt", "**/*.md", False),
        ("docs/README.md", "docs/**/README.md", True),
        ("docs/a/b/README.md", "docs/**/README.md", True),
        ("other/README.md", "docs/**/README.md", False),
        ("a/x/b/y/c", "a/**/b/**/c", True),
        ("anything/at/all", "**", True),
    ],
)
def test_double_star_spans_segments(path: str, pattern: str, expected: bool) -> None:
    assert matches_glob(path, pattern) is expected


class TestMatchesExclude:
    def test_any_pattern_matches(self) -> None:
        patterns = [".claude/**", ".github/**", "README.md"]

        assert matches_exclude(".github/workflows/ci.yml", patterns)
        assert matches_exclude("README.md", patterns)
        assert not matches_exclude("docs/README.md", patterns)
        assert not matches_exclude("src/main.go", patterns)

    def test_no_patterns_never_match(self) -> None:
        assert not matches_exclude("any/file.go", [])

    def test_backslashes_are_separators(self) -> None:
        assert matches_exclude(".claude\\settings.json", [".claude/**"])
