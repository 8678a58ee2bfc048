"""Tests for mapping path normalization and overlap rules."""
from __future__ import annotations

from pathlib import Path

import pytest

from gitvendor.core.exceptions import InvalidPathError
from gitvendor.core.paths import (
    is_reserved_destination,
    normalize_mapping_path,
    paths_overlap,
    resolve_project_root,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("src", "src"),
        ("./src/", "src"),
        ("src//lib/./x", "src/lib/x"),
        ("src\\win", "src/win"),
        ("", "."),
        (".", "."),
    ],
)
def test_normalize_source(raw: str, expected: str) -> None:
    assert normalize_mapping_path(raw, kind="source") == expected


@pytest.mark.parametrize("raw", ["", ".", "./"])
def test_destination_cannot_be_project_root(raw: str) -> None:
    with pytest.raises(InvalidPathError):
        normalize_mapping_path(raw, kind="destination")


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("vendor/lib", "vendor/lib", True),
        ("vendor", "vendor/lib", True),
        ("vendor/lib", "vendor/lib2", False),
        ("vendor/a", "vendor/b", False),
    ],
)
def test_paths_overlap(a: str, b: str, expected: bool) -> None:
    assert paths_overlap(a, b) is expected
    assert paths_overlap(b, a) is expected


def test_reserved_destinations() -> None:
    assert is_reserved_destination(".git-vendor/cache")
    assert is_reserved_destination(".git")
    assert not is_reserved_destination("vendor/.git-vendor-docs")


def test_resolve_project_root_prefers_vendor_dir(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    project = tmp_path / "sub"
    (project / ".git-vendor").mkdir(parents=True)
    nested = project / "a" / "b"
    nested.mkdir(parents=True)

    assert resolve_project_root(nested) == project.resolve()
    assert resolve_project_root(tmp_path) == tmp_path.resolve()
