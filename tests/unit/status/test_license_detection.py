"""Tests for license text detection and tree-based lookup."""
from __future__ import annotations

from pathlib import Path

import pytest

from gitvendor.core.cache import IncrementalCache
from gitvendor.core.compliance import TreeLicenseLookup, detect_license, parse_license_text
from gitvendor.core.exceptions import LicenseLookupError, NetworkError


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Apache License\nVersion 2.0, January 2004", "Apache-2.0"),
        ("MIT License\n\nCopyright (c) 2020", "MIT"),
        ("GNU GENERAL PUBLIC LICENSE\nVersion 3, 29 June 2007", "GPL-3.0"),
        ("GNU LESSER GENERAL PUBLIC LICENSE\nVersion 2.1", "LGPL-2.1"),
        ("Mozilla Public License Version 2.0", "MPL-2.0"),
        ("ISC License\n\nPermission to use, copy, modify", "ISC"),
        ("This is free and unencumbered software released into the public domain. Unlicense", "Unlicense"),
        ("All rights reserved. Proprietary.", None),
    ],
)
def test_parse_license_text(text: str, expected) -> None:
    assert parse_license_text(text) == expected


def test_detect_license_checks_known_file_names() -> None:
    tree = {"src/main.c": b"", "COPYING": b"GNU GENERAL PUBLIC LICENSE Version 2"}

    assert detect_license(tree) == "GPL-2.0"
    assert detect_license({"docs/LICENSE": b"MIT License"}) is None


class TestTreeLicenseLookup:
    """Lookup reads the locked commit's tree through the cache."""

    def test_uses_cache_before_git(self, tmp_path: Path, fake_git) -> None:
        cache = IncrementalCache(tmp_path / "cache")
        cache.put("abcd1234", {"LICENSE": b"MIT License"})

        assert TreeLicenseLookup(fake_git, cache).lookup("https://h/r.git", "abcd1234") == "MIT"
        assert fake_git.count("fetch_tree") == 0

    def test_fetches_and_caches_on_miss(self, tmp_path: Path, fake_git) -> None:
        cache = IncrementalCache(tmp_path / "cache")
        fake_git.publish("https://h/r.git", "main", "abcd1234", {"LICENSE": b"Apache License Version 2.0"})

        assert TreeLicenseLookup(fake_git, cache).lookup("https://h/r.git", "abcd1234") == "Apache-2.0"
        assert cache.contains("abcd1234")

    def test_git_failure_becomes_lookup_error(self, tmp_path: Path, fake_git) -> None:
        cache = IncrementalCache(tmp_path / "cache")
        fake_git.fail_next("fetch_tree", NetworkError("down"))

        with pytest.raises(LicenseLookupError):
            TreeLicenseLookup(fake_git, cache).lookup("https://h/r.git", "abcd1234")

    def test_no_fetch_on_miss_when_fetching_disallowed(self, tmp_path: Path, fake_git) -> None:
        cache = IncrementalCache(tmp_path / "cache")
        fake_git.publish("https://h/r.git", "main", "abcd1234", {"LICENSE": b"MIT License"})

        with pytest.raises(LicenseLookupError):
            TreeLicenseLookup(fake_git, cache).lookup("https://h/r.git", "abcd1234", allow_fetch=False)
        assert fake_git.calls == []

    def test_cached_tree_still_served_when_fetching_disallowed(self, tmp_path: Path, fake_git) -> None:
        cache = IncrementalCache(tmp_path / "cache")
        cache.put("abcd1234", {"LICENSE": b"MIT License"})

        assert TreeLicenseLookup(fake_git, cache).lookup("https://h/r.git", "abcd1234", allow_fetch=False) == "MIT"

    def test_cache_write_failure_still_returns_license(self, tmp_path: Path, fake_git) -> None:
        cache = IncrementalCache(tmp_path / "cache")
        (tmp_path / "cache").mkdir()
        (tmp_path / "cache" / "tmp").write_text("not a directory", encoding="utf-8")
        fake_git.publish("https://h/r.git", "main", "abcd1234", {"LICENSE": b"MIT License"})

        assert TreeLicenseLookup(fake_git, cache).lookup("https://h/r.git", "abcd1234") == "MIT"
        assert not cache.contains("abcd1234")
