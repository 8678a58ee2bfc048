"""Vendor sync manager.

High-level orchestration of pull, status, and gc: reads the config and lock
snapshots once, hands them to the scheduler or status engine, and performs
the single lock write (plus any config prune) after the workers are done.
"""
from __future__ import annotations

import dataclasses
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from gitvendor.core.cache import IncrementalCache
from gitvendor.core.commit import commit_vendor_changes
from gitvendor.core.compliance import LicenseLookup, TreeLicenseLookup
from gitvendor.core.config import ConfigStore
from gitvendor.core.gc import CacheGarbageCollector
from gitvendor.core.git import GitOperations, SystemGitOperations
from gitvendor.core.lock import LockStore
from gitvendor.core.models import GCResult, LockEntry, SyncOutcome, VendorDefinition
from gitvendor.core.policy import load_license_policy
from gitvendor.core.settings import Settings, load_settings
from gitvendor.core.status import StatusEngine, StatusOptions, StatusReport
from gitvendor.core.sync import SyncOptions, SyncReport, SyncScheduler

logger = logging.getLogger(__name__)


class VendorSyncManager:
    """Coordinates the stores, the git backend, the cache and the engines."""

    def __init__(
        self,
        repo_root: Path,
        settings: Optional[Settings] = None,
        *,
        git: Optional[GitOperations] = None,
        license_lookup: Optional[LicenseLookup] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the manager.

        Args:
            repo_root: Project root
            settings: Resolved settings (loaded from the project when omitted)
            git: Git backend (the system ``git`` binary when omitted)
            license_lookup: License detector for status (reads the locked tree when omitted)
            cancel_event: Set to stop units that have not started yet
            sleep: Backoff sleep (injectable for tests)
        """
        self.repo_root = Path(repo_root)
        self.settings = settings or load_settings(self.repo_root)
        self.config = ConfigStore(self.repo_root)
        self.lock = LockStore(self.repo_root)
        self.cache = IncrementalCache(self.settings.cache_dir)
        self.git = git or SystemGitOperations(
            self.cache,
            binary=self.settings.git_binary,
            timeout=self.settings.git_timeout,
        )
        self.license_lookup = license_lookup or TreeLicenseLookup(self.git, self.cache)
        self.cancel_event = cancel_event or threading.Event()
        self.sleep = sleep

    def snapshot(self) -> Tuple[List[VendorDefinition], Dict[str, LockEntry]]:
        """Read and validate config and lock once; errors here abort the run.

        Raises:
            ConfigError: Unreadable or invalid config
            LockCorruptError: Unreadable or invalid lock
        """
        vendors = self.config.validate(self.config.load())
        lock = self.lock.load()
        return vendors, lock

    def pull(self, options: SyncOptions, *, commit: bool = False) -> SyncReport:
        """Sync vendors, then persist the lock (and pruned mappings) once."""
        vendors, lock = self.snapshot()
        scheduler = SyncScheduler(
            self.repo_root,
            self.git,
            self.cache,
            retry_policy=self.settings.retry,
            cancel_event=self.cancel_event,
            sleep=self.sleep,
        )
        report = scheduler.run(vendors, lock, options)
        if options.dry_run:
            return report

        if report.lock_entries:
            self.lock.update_many(report.lock_entries)
        if report.pruned_mappings:
            self._prune_config(vendors, report)

        if commit and report.lock_entries:
            changed = [r for r in report.results if r.outcome is SyncOutcome.SYNCED]
            touched = {m.destination for v in vendors for m in v.mappings if any(r.vendor_name == v.name for r in changed)}
            commit_vendor_changes(
                self.repo_root,
                report.lock_entries,
                sorted(touched),
                binary=self.settings.git_binary,
            )
        return report

    def _prune_config(self, vendors: List[VendorDefinition], report: SyncReport) -> None:
        updated = []
        for vendor in vendors:
            dropped = set(report.pruned_mappings.get(vendor.name, ()))
            if dropped:
                vendor = dataclasses.replace(
                    vendor,
                    mappings=tuple(m for m in vendor.mappings if m.destination not in dropped),
                )
                logger.info("Removed pruned mapping(s) %s from '%s'", ", ".join(sorted(dropped)), vendor.name)
            updated.append(vendor)
        self.config.save(updated)

    def status(self, options: StatusOptions) -> StatusReport:
        """Check drift and compliance under the project license policy.

        Raises:
            PolicyError: If the project policy file is invalid
        """
        vendors, lock = self.snapshot()
        engine = StatusEngine(
            self.repo_root,
            self.git,
            license_lookup=self.license_lookup,
            policy=load_license_policy(self.repo_root),
            retry_policy=self.settings.retry,
            sleep=self.sleep,
        )
        return engine.check(vendors, lock, dataclasses.replace(options, workers=self.settings.workers))

    def gc(self, *, dry_run: bool = False, clean_all: bool = False) -> GCResult:
        vendors, lock = self.snapshot()
        return CacheGarbageCollector(self.cache).collect(vendors, lock, dry_run=dry_run, clean_all=clean_all)


__all__ = ["VendorSyncManager"]
