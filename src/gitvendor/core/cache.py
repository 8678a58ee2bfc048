"""Incremental cache of fetched commit trees.

Commits are immutable, so a tree fetched once for a commit hash stays valid
forever. Entries are stored as plain directories::

    <cache_dir>/trees/<commit[:2]>/<commit>/<files...>
    <cache_dir>/mirrors/<repo>-<urlhash>.git

An entry is written to a private staging directory and published with a
single rename. A directory that exists under ``trees/`` is therefore always
complete, and two workers putting the same commit race harmlessly: the
loser discards its copy.
"""
from __future__ import annotations

import hashlib
import logging
import os
import re
import shutil
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

from gitvendor.core.checksum import read_destination
from gitvendor.core.exceptions import CacheError
from gitvendor.core.models import Tree
from gitvendor.core.utils.io import ensure_directory

logger = logging.getLogger(__name__)

_COMMIT_RE = re.compile(r"^[0-9a-f]{4,64}$")


def dir_size(path: Path) -> int:
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for filename in filenames:
            try:
                total += (Path(dirpath) / filename).stat().st_size
            except OSError:
                continue
    return total


class IncrementalCache:
    """Content-addressed store of fetched trees, keyed by commit hash."""

    def __init__(self, cache_dir: Path, *, bypass: bool = False) -> None:
        """Initialize the cache.

        Args:
            cache_dir: Root cache directory
            bypass: Report every lookup as a miss (``--no-cache``); puts still happen
        """
        self.cache_dir = Path(cache_dir)
        self.bypass = bypass

    @property
    def trees_dir(self) -> Path:
        return self.cache_dir / "trees"

    @property
    def mirrors_dir(self) -> Path:
        return self.cache_dir / "mirrors"

    def _entry_path(self, commit: str) -> Path:
        if not _COMMIT_RE.match(commit):
            raise CacheError(f"Invalid commit hash for cache key: {commit!r}", context={"commit": commit})
        return self.trees_dir / commit[:2] / commit

    def contains(self, commit: str) -> bool:
        return self._entry_path(commit).is_dir()

    def get(self, commit: str) -> Tuple[Optional[Tree], bool]:
        """Look up a commit's tree.

        Returns:
            ``(tree, True)`` on a hit, ``(None, False)`` on a miss or when bypassed
        """
        if self.bypass:
            logger.debug("Cache bypassed for %s", commit)
            return None, False

        path = self._entry_path(commit)
        if not path.is_dir():
            logger.debug("Cache miss for %s", commit)
            return None, False

        try:
            tree = read_destination(path) or {}
        except OSError as e:
            raise CacheError(f"Cannot read cache entry {path}: {e}", context={"commit": commit}) from e
        logger.debug("Cache hit for %s (%d files)", commit, len(tree))
        return tree, True

    def put(self, commit: str, tree: Tree) -> None:
        """Store a commit's tree (a no-op when the entry already exists)."""
        final = self._entry_path(commit)
        if final.is_dir():
            return

        staging = self.cache_dir / "tmp" / f"{commit}.{uuid.uuid4().hex[:12]}"
        try:
            for rel, content in tree.items():
                target = staging / rel
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)
            staging.mkdir(parents=True, exist_ok=True)
            ensure_directory(final.parent)
            try:
                os.rename(staging, final)
            except OSError:
                if not final.is_dir():
                    raise
                logger.debug("Cache entry %s published concurrently", commit)
            else:
                logger.debug("Cached %s (%d files)", commit, len(tree))
        except OSError as e:
            raise CacheError(f"Cannot write cache entry for {commit}: {e}", context={"commit": commit}) from e
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

    def entries(self) -> List[str]:
        """Commit hashes currently cached."""
        if not self.trees_dir.is_dir():
            return []
        found: List[str] = []
        for bucket in sorted(self.trees_dir.iterdir()):
            if not bucket.is_dir():
                continue
            found.extend(p.name for p in sorted(bucket.iterdir()) if p.is_dir() and _COMMIT_RE.match(p.name))
        return found

    def evict(self, commit: str) -> int:
        """Remove a cached tree; returns bytes freed."""
        path = self._entry_path(commit)
        if not path.is_dir():
            return 0
        size = dir_size(path)
        shutil.rmtree(path)
        try:
            path.parent.rmdir()
        except OSError:
            pass
        logger.info("Evicted cached tree %s", commit)
        return size

    def mirror_path(self, url: str) -> Path:
        """Path of the bare mirror repository for ``url``.

        A hash of the URL keeps the name unique and filesystem-safe; the
        repository name is kept as a prefix for readability.
        """
        url_hash = hashlib.sha256(url.encode()).hexdigest()[:16]

        normalized = url.rstrip("/")
        # scp-style URLs like git@github.com:user/repo.git
        if "://" not in normalized and ":" in normalized and "@" in normalized:
            normalized = normalized.rsplit(":", 1)[-1]
        name = normalized.split("/")[-1]
        if name.endswith(".git"):
            name = name[:-4]
        for sep in ("/", os.sep, os.altsep or ""):
            if sep:
                name = name.replace(sep, "_")
        if not name:
            name = "mirror"

        return self.mirrors_dir / f"{name}-{url_hash}.git"

    def mirrors(self) -> List[Path]:
        if not self.mirrors_dir.is_dir():
            return []
        return sorted(p for p in self.mirrors_dir.iterdir() if p.is_dir() and p.name.endswith(".git"))


__all__ = ["IncrementalCache", "dir_size"]
