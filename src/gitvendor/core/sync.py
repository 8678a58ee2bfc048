"""Sync scheduler.

Turns vendor definitions into an on-disk tree pinned by the lock:

1. Select vendors (explicit names, then ``group``); unknown names and groups
   fail before any work starts.
2. For each vendor, pick the target commit: the locked commit for
   ``locked`` runs, otherwise ``resolve_ref`` (retried on network errors).
3. Skip vendors whose lock already matches the target, the configured
   mappings and the disk.
4. Fetch the tree (cache first). Vendors sharing ``(url, commit)`` share a
   single fetch.
5. Apply each mapping (minus its exclude globs) by atomically replacing its
   destination.

Units run on a bounded thread pool. A failing unit never cancels its
siblings, and the scheduler never writes the lock itself: the caller gets
every new :class:`LockEntry` back in the :class:`SyncReport` and persists
them in one write after all workers have joined.
"""
from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from gitvendor.core.cache import IncrementalCache
from gitvendor.core.checksum import SINGLE_FILE_KEY, digest_files, extract_source, read_destination
from gitvendor.core.exceptions import (
    CacheError,
    GitVendorError,
    GroupNotFoundError,
    NetworkError,
    SourcePathNotFoundError,
    VendorNotFoundError,
)
from gitvendor.core.git import GitOperations
from gitvendor.core.models import (
    FileChange,
    LockEntry,
    PathMapping,
    SyncOutcome,
    SyncResult,
    Tree,
    VendorDefinition,
)
from gitvendor.core.utils.io import remove_tree, replace_tree
from gitvendor.core.utils.resilience import RetryPolicy, call_with_retry
from gitvendor.core.utils.time import utc_timestamp
from gitvendor.core.validation import validate_url

logger = logging.getLogger(__name__)

# Called with (vendor name, locally modified destinations); True overwrites.
ConfirmOverwrite = Callable[[str, Tuple[str, ...]], bool]


@dataclass(frozen=True, slots=True)
class SyncOptions:
    """Flags for one sync run."""

    dry_run: bool = False
    force: bool = False
    no_cache: bool = False
    group: Optional[str] = None
    locked: bool = False
    prune: bool = False
    keep_local: bool = False
    workers: int = 1
    names: Tuple[str, ...] = ()
    allow_local: bool = False
    confirm_overwrite: Optional[ConfirmOverwrite] = None


@dataclass
class SyncReport:
    """Everything a sync run produced; nothing here is persisted yet."""

    results: List[SyncResult] = field(default_factory=list)
    lock_entries: List[LockEntry] = field(default_factory=list)
    pruned_mappings: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    dry_run: bool = False
    interrupted: bool = False

    @property
    def failed(self) -> List[SyncResult]:
        return [r for r in self.results if r.outcome is SyncOutcome.FAILED]

    @property
    def exit_code(self) -> int:
        if self.interrupted:
            return 130
        return 1 if self.failed and not self.dry_run else 0

    def count(self, outcome: SyncOutcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    def to_dict(self) -> dict:
        return {
            "dry_run": self.dry_run,
            "interrupted": self.interrupted,
            "vendors": [r.to_dict() for r in self.results],
            "summary": {outcome.value: self.count(outcome) for outcome in SyncOutcome},
        }


def select_vendors(
    vendors: Sequence[VendorDefinition],
    *,
    names: Sequence[str] = (),
    group: Optional[str] = None,
) -> List[VendorDefinition]:
    """Filter vendors by explicit names and group.

    Raises:
        VendorNotFoundError: For a name that is not configured
        GroupNotFoundError: When no vendor carries ``group``
    """
    selected = list(vendors)
    if names:
        known = {v.name for v in vendors}
        for name in names:
            if name not in known:
                raise VendorNotFoundError(f"Vendor '{name}' is not configured", context={"vendor": name})
        wanted = set(names)
        selected = [v for v in selected if v.name in wanted]
    if group:
        if not any(v.group == group for v in vendors):
            raise GroupNotFoundError(f"No vendor belongs to group '{group}'", context={"group": group})
        selected = [v for v in selected if v.group == group]
    return selected


def plan_changes(destination: str, old: Optional[Mapping[str, bytes]], new: Mapping[str, bytes]) -> List[FileChange]:
    """Per-file changes replacing ``old`` with ``new`` at ``destination``."""

    def display(rel: str) -> str:
        return destination if rel == SINGLE_FILE_KEY else f"{destination}/{rel}"

    before = dict(old or {})
    changes: List[FileChange] = []
    for rel in sorted(set(before) | set(new)):
        if rel not in before:
            changes.append(FileChange(display(rel), "added"))
        elif rel not in new:
            changes.append(FileChange(display(rel), "removed"))
        elif before[rel] != new[rel]:
            changes.append(FileChange(display(rel), "modified"))
    return changes


class _SharedTreeFetcher:
    """Fetches each ``(url, commit)`` once per run, however many vendors need it."""

    def __init__(
        self,
        git: GitOperations,
        cache: IncrementalCache,
        policy: RetryPolicy,
        sleep: Callable[[float], None],
    ) -> None:
        self.git = git
        self.cache = cache
        self.policy = policy
        self.sleep = sleep
        self._lock = threading.Lock()
        self._pending: Dict[Tuple[str, str], concurrent.futures.Future] = {}

    def get(self, url: str, commit: str) -> Tree:
        key = (url, commit)
        with self._lock:
            future = self._pending.get(key)
            owner = future is None
            if owner:
                future = concurrent.futures.Future()
                self._pending[key] = future

        if not owner:
            logger.debug("Reusing shared fetch of %s", commit[:12])
            return future.result()

        try:
            tree = self._load(url, commit)
        except BaseException as e:
            future.set_exception(e)
            raise
        future.set_result(tree)
        return tree

    def _load(self, url: str, commit: str) -> Tree:
        tree, hit = self.cache.get(commit)
        if hit and tree is not None:
            logger.info("Cache hit for %s", commit[:12])
            return tree

        tree = call_with_retry(
            self.git.fetch_tree,
            url,
            commit,
            policy=self.policy,
            exceptions=(NetworkError,),
            sleep=self.sleep,
        )
        try:
            self.cache.put(commit, tree)
        except CacheError as e:
            logger.warning("Could not cache %s: %s", commit[:12], e)
        return tree


class SyncScheduler:
    """Runs sync units for a config/lock snapshot on a bounded worker pool."""

    def __init__(
        self,
        repo_root: Path,
        git: GitOperations,
        cache: IncrementalCache,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.repo_root = Path(repo_root)
        self.git = git
        self.cache = cache
        self.retry_policy = retry_policy or RetryPolicy()
        self.cancel_event = cancel_event or threading.Event()
        self.sleep = sleep

    def run(
        self,
        vendors: Sequence[VendorDefinition],
        lock: Mapping[str, LockEntry],
        options: SyncOptions,
    ) -> SyncReport:
        """Sync the selected vendors and report what happened.

        Args:
            vendors: Validated config snapshot
            lock: Lock snapshot, read once before the run
            options: Run flags
        """
        selected = select_vendors(vendors, names=options.names, group=options.group)
        report = SyncReport(dry_run=options.dry_run)
        if not selected:
            return report

        cache = IncrementalCache(self.cache.cache_dir, bypass=True) if options.no_cache else self.cache
        fetcher = _SharedTreeFetcher(self.git, cache, self.retry_policy, self.sleep)
        workers = max(1, min(options.workers, len(selected)))
        logger.info("Syncing %d vendor(s) with %d worker(s)", len(selected), workers)

        results: Dict[str, SyncResult] = {}
        entries: Dict[str, LockEntry] = {}
        pruned: Dict[str, Tuple[str, ...]] = {}

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=workers)
        futures: Dict[concurrent.futures.Future, VendorDefinition] = {}
        try:
            futures = {
                executor.submit(self._sync_vendor, vendor, lock.get(vendor.name), options, fetcher): vendor
                for vendor in selected
            }
            for future in concurrent.futures.as_completed(futures):
                vendor = futures[future]
                try:
                    result, entry, pruned_dests = future.result()
                except Exception as e:
                    logger.error("Vendor '%s' failed unexpectedly: %s", vendor.name, e)
                    previous = lock.get(vendor.name)
                    result = SyncResult(
                        vendor_name=vendor.name,
                        outcome=SyncOutcome.FAILED,
                        previous_commit=previous.commit if previous else None,
                        error=str(e),
                        error_code=type(e).__name__,
                    )
                    entry, pruned_dests = None, ()
                results[vendor.name] = result
                if entry is not None:
                    entries[vendor.name] = entry
                if pruned_dests:
                    pruned[vendor.name] = pruned_dests
                logger.info("Vendor '%s': %s", vendor.name, result.outcome.value)
        except KeyboardInterrupt:
            logger.warning("Interrupted; waiting for running vendors to finish")
            self.cancel_event.set()
            report.interrupted = True
            executor.shutdown(wait=True, cancel_futures=True)
            for future, vendor in futures.items():
                if vendor.name in results or future.cancelled():
                    continue
                try:
                    result, entry, pruned_dests = future.result()
                except BaseException:
                    continue
                results[vendor.name] = result
                if entry is not None:
                    entries[vendor.name] = entry
                if pruned_dests:
                    pruned[vendor.name] = pruned_dests
        finally:
            executor.shutdown(wait=True)

        for vendor in selected:
            result = results.get(vendor.name)
            if result is None:
                previous = lock.get(vendor.name)
                result = SyncResult(
                    vendor_name=vendor.name,
                    outcome=SyncOutcome.SKIPPED,
                    previous_commit=previous.commit if previous else None,
                    warnings=("cancelled before it started",),
                )
            report.results.append(result)

        if not options.dry_run:
            report.lock_entries = [entries[v.name] for v in selected if v.name in entries]
            report.pruned_mappings = {v.name: pruned[v.name] for v in selected if v.name in pruned}
        return report

    # ------------------------------------------------------------------
    # One vendor
    # ------------------------------------------------------------------
    def _sync_vendor(
        self,
        vendor: VendorDefinition,
        previous: Optional[LockEntry],
        options: SyncOptions,
        fetcher: _SharedTreeFetcher,
    ) -> Tuple[SyncResult, Optional[LockEntry], Tuple[str, ...]]:
        previous_commit = previous.commit if previous else None

        def skipped(reason: str, commit: Optional[str] = None) -> Tuple[SyncResult, None, Tuple[str, ...]]:
            return (
                SyncResult(
                    vendor_name=vendor.name,
                    outcome=SyncOutcome.SKIPPED,
                    commit=commit,
                    previous_commit=previous_commit,
                    warnings=(reason,),
                ),
                None,
                (),
            )

        if self.cancel_event.is_set():
            return skipped("cancelled before it started")

        commit: Optional[str] = None
        try:
            validate_url(vendor.name, vendor.url, vendor.ref, allow_local=options.allow_local)
            commit = self._target_commit(vendor, previous, options)

            on_disk = {m.destination: read_destination(self.repo_root / m.destination) for m in vendor.mappings}
            on_disk_sums = {d: (digest_files(f) if f is not None else None) for d, f in on_disk.items()}

            if not options.force and self._is_unchanged(vendor, previous, commit, on_disk_sums):
                logger.debug("Vendor '%s' already at %s", vendor.name, commit[:12])
                return (
                    SyncResult(
                        vendor_name=vendor.name,
                        outcome=SyncOutcome.UNCHANGED,
                        commit=commit,
                        previous_commit=previous_commit,
                    ),
                    None,
                    (),
                )

            if self.cancel_event.is_set():
                return skipped("cancelled before fetching", commit)

            tree = fetcher.get(vendor.url, commit)
            return self._apply(vendor, previous, commit, tree, on_disk, on_disk_sums, options)
        except (GitVendorError, OSError) as e:
            logger.error("Vendor '%s' failed: %s", vendor.name, e)
            return (
                SyncResult(
                    vendor_name=vendor.name,
                    outcome=SyncOutcome.FAILED,
                    commit=commit,
                    previous_commit=previous_commit,
                    error=str(e),
                    error_code=type(e).__name__,
                ),
                None,
                (),
            )

    def _target_commit(self, vendor: VendorDefinition, previous: Optional[LockEntry], options: SyncOptions) -> str:
        if options.locked and previous is not None:
            return previous.commit
        return call_with_retry(
            self.git.resolve_ref,
            vendor.url,
            vendor.ref,
            policy=self.retry_policy,
            exceptions=(NetworkError,),
            sleep=self.sleep,
        )

    @staticmethod
    def _is_unchanged(
        vendor: VendorDefinition,
        previous: Optional[LockEntry],
        commit: str,
        on_disk_sums: Mapping[str, Optional[str]],
    ) -> bool:
        if previous is None or previous.commit != commit:
            return False
        if set(previous.checksums) != {m.destination for m in vendor.mappings}:
            return False
        # Older entries carry no mappings; their destinations were compared above.
        if previous.mappings and set(previous.mappings) != set(vendor.mappings):
            return False
        return all(on_disk_sums[d] == previous.checksums[d] for d in previous.checksums)

    def _apply(
        self,
        vendor: VendorDefinition,
        previous: Optional[LockEntry],
        commit: str,
        tree: Tree,
        on_disk: Mapping[str, Optional[Dict[str, bytes]]],
        on_disk_sums: Mapping[str, Optional[str]],
        options: SyncOptions,
    ) -> Tuple[SyncResult, Optional[LockEntry], Tuple[str, ...]]:
        previous_commit = previous.commit if previous else None
        warnings: List[str] = []

        planned: List[Tuple[PathMapping, Dict[str, bytes]]] = []
        missing: List[PathMapping] = []
        for mapping in vendor.mappings:
            files = extract_source(tree, mapping.source, mapping.exclude)
            if files is None:
                missing.append(mapping)
            else:
                planned.append((mapping, files))

        if missing and not options.prune:
            first = missing[0]
            raise SourcePathNotFoundError(
                f"Source path '{first.source}' not found in {vendor.name}@{commit[:12]}",
                context={"vendor": vendor.name, "source": first.source, "commit": commit},
            )

        modified: Tuple[str, ...] = ()
        if previous is not None:
            modified = tuple(
                m.destination
                for m in vendor.mappings
                if m.destination in previous.checksums
                and on_disk_sums[m.destination] is not None
                and on_disk_sums[m.destination] != previous.checksums[m.destination]
            )

        if modified:
            listed = ", ".join(modified)
            if options.keep_local:
                # Local edits win over both updating and pruning.
                logger.warning("Vendor '%s' has local modifications in %s; leaving it untouched", vendor.name, listed)
                return (
                    SyncResult(
                        vendor_name=vendor.name,
                        outcome=SyncOutcome.MODIFIED,
                        commit=commit,
                        previous_commit=previous_commit,
                        warnings=(f"local modifications kept in {listed}",),
                    ),
                    None,
                    (),
                )
            if options.confirm_overwrite is not None and not options.dry_run:
                if not options.confirm_overwrite(vendor.name, modified):
                    return (
                        SyncResult(
                            vendor_name=vendor.name,
                            outcome=SyncOutcome.SKIPPED,
                            commit=commit,
                            previous_commit=previous_commit,
                            warnings=(f"overwrite of local modifications in {listed} declined",),
                        ),
                        None,
                        (),
                    )
            warnings.append(f"overwriting local modifications in {listed}")

        changes: List[FileChange] = []
        checksums: Dict[str, str] = {}
        files_written = 0
        for mapping, files in planned:
            digest = digest_files(files)
            checksums[mapping.destination] = digest
            if digest == on_disk_sums[mapping.destination]:
                continue
            changes.extend(plan_changes(mapping.destination, on_disk[mapping.destination], files))
            files_written += len(files)
            if not options.dry_run:
                replace_tree(self.repo_root / mapping.destination, files)

        pruned: List[str] = []
        for mapping in missing:
            pruned.append(mapping.destination)
            changes.extend(
                FileChange(c.path, "removed")
                for c in plan_changes(mapping.destination, on_disk[mapping.destination], {})
            )
            if not options.dry_run:
                remove_tree(self.repo_root / mapping.destination)
            logger.info("Pruned %s (source '%s' no longer exists)", mapping.destination, mapping.source)

        if missing and not planned:
            warnings.append("every mapping was pruned; the vendor definition was left in place")

        entry = LockEntry(
            name=vendor.name,
            url=vendor.url,
            ref=vendor.ref,
            commit=commit,
            checksums=checksums,
            locked_at=utc_timestamp(),
            mappings=tuple(mapping for mapping, _files in planned),
        )
        result = SyncResult(
            vendor_name=vendor.name,
            outcome=SyncOutcome.SYNCED,
            commit=commit,
            previous_commit=previous_commit,
            files_written=files_written,
            changes=tuple(changes),
            pruned=tuple(pruned),
            warnings=tuple(warnings),
        )
        # Mappings are only dropped from the config while at least one remains.
        config_pruned = tuple(pruned) if planned else ()
        return result, entry, config_pruned


__all__ = [
    "ConfirmOverwrite",
    "SyncOptions",
    "SyncReport",
    "SyncScheduler",
    "select_vendors",
    "plan_changes",
]
