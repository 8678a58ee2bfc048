"""Cache garbage collection.

Cached trees are kept for every commit the lock references and mirrors for
every URL the config references; everything else is removable.
"""
from __future__ import annotations

import logging
import shutil
from typing import Iterable, Mapping

from gitvendor.core.cache import IncrementalCache, dir_size
from gitvendor.core.models import GCResult, LockEntry, VendorDefinition

logger = logging.getLogger(__name__)


class CacheGarbageCollector:
    """Evicts cache entries no longer referenced by the config or lock."""

    def __init__(self, cache: IncrementalCache) -> None:
        self.cache = cache

    def collect(
        self,
        vendors: Iterable[VendorDefinition],
        lock: Mapping[str, LockEntry],
        *,
        dry_run: bool = False,
        clean_all: bool = False,
    ) -> GCResult:
        """Run garbage collection.

        Args:
            vendors: Config snapshot (keeps mirrors of configured URLs)
            lock: Lock snapshot (keeps trees of locked commits)
            dry_run: Report what would be removed without deleting
            clean_all: Remove every cache entry, referenced or not

        Returns:
            GCResult with removal statistics
        """
        if not self.cache.cache_dir.exists():
            return GCResult()

        if clean_all:
            keep_commits: set[str] = set()
            keep_mirrors: set[str] = set()
        else:
            keep_commits = {entry.commit for entry in lock.values()}
            keep_mirrors = {str(self.cache.mirror_path(v.url)) for v in vendors}

        trees = [c for c in self.cache.entries() if c not in keep_commits]
        mirrors = [p for p in self.cache.mirrors() if not p.is_symlink() and str(p) not in keep_mirrors]

        if dry_run:
            estimate = sum(dir_size(self.cache.trees_dir / c[:2] / c) for c in trees)
            estimate += sum(dir_size(p) for p in mirrors)
            return GCResult(
                removed_trees=tuple(trees),
                removed_mirrors=tuple(str(p) for p in mirrors),
                bytes_freed=estimate,
            )

        bytes_freed = 0
        removed_trees: list[str] = []
        for commit in trees:
            try:
                bytes_freed += self.cache.evict(commit)
                removed_trees.append(commit)
            except OSError as e:
                logger.warning("Could not evict cached tree %s: %s", commit, e)

        cache_root = self.cache.cache_dir.resolve()
        removed_mirrors: list[str] = []
        for path in mirrors:
            if not path.resolve().is_relative_to(cache_root):
                continue
            try:
                size = dir_size(path)
                shutil.rmtree(path)
            except OSError as e:
                logger.warning("Could not remove mirror %s: %s", path, e)
                continue
            bytes_freed += size
            removed_mirrors.append(str(path))

        logger.info("GC removed %d tree(s) and %d mirror(s)", len(removed_trees), len(removed_mirrors))
        return GCResult(
            removed_trees=tuple(removed_trees),
            removed_mirrors=tuple(removed_mirrors),
            bytes_freed=bytes_freed,
        )


__all__ = ["CacheGarbageCollector"]
