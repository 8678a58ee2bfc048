"""Status and compliance reporting.

For every vendor the engine answers three questions in one pass:

- local drift: do on-disk checksums still match the lock?
- remote drift: does the tracked ref still point at the locked commit?
- compliance: given the vendor's level, do those answers pass?

``offline`` never touches the network (license lookups included);
``remote_only`` never reads the tree.
"""
from __future__ import annotations

import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from gitvendor.core.checksum import checksum_destination
from gitvendor.core.compliance import ComplianceFacts, LicenseLookup, evaluate
from gitvendor.core.exceptions import GitError, LicenseLookupError, NetworkError
from gitvendor.core.git import GitOperations
from gitvendor.core.models import ComplianceLevel, LockEntry, StatusEntry, Verdict, VendorDefinition
from gitvendor.core.policy import LicensePolicy
from gitvendor.core.sync import select_vendors
from gitvendor.core.utils.resilience import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatusOptions:
    offline: bool = False
    remote_only: bool = False
    strict_only: bool = False
    compliance_override: Optional[ComplianceLevel] = None
    names: Tuple[str, ...] = ()
    workers: int = 4


@dataclass
class StatusReport:
    entries: List[StatusEntry] = field(default_factory=list)
    orphaned: List[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if any(e.verdict is Verdict.FAIL for e in self.entries) else 0

    def count(self, verdict: Verdict) -> int:
        return sum(1 for e in self.entries if e.verdict is verdict)

    def to_dict(self) -> dict:
        return {
            "vendors": [e.to_dict() for e in self.entries],
            "orphaned_lock_entries": list(self.orphaned),
            "summary": {v.value: self.count(v) for v in Verdict},
        }


class StatusEngine:
    """Computes :class:`StatusEntry` records for a config/lock snapshot."""

    def __init__(
        self,
        repo_root: Path,
        git: GitOperations,
        *,
        license_lookup: Optional[LicenseLookup] = None,
        policy: Optional[LicensePolicy] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.repo_root = Path(repo_root)
        self.git = git
        self.license_lookup = license_lookup
        self.policy = policy
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep

    def check(
        self,
        vendors: Sequence[VendorDefinition],
        lock: Mapping[str, LockEntry],
        options: StatusOptions,
    ) -> StatusReport:
        selected = select_vendors(vendors, names=options.names)
        if options.strict_only:
            selected = [v for v in selected if self._level(v, options) is ComplianceLevel.STRICT]

        report = StatusReport(orphaned=sorted(set(lock) - {v.name for v in vendors}))
        if not selected:
            return report

        workers = max(1, min(options.workers, len(selected)))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            report.entries = list(executor.map(lambda v: self._check_vendor(v, lock.get(v.name), options), selected))
        return report

    @staticmethod
    def _level(vendor: VendorDefinition, options: StatusOptions) -> ComplianceLevel:
        return options.compliance_override or vendor.compliance

    def _check_vendor(
        self,
        vendor: VendorDefinition,
        entry: Optional[LockEntry],
        options: StatusOptions,
    ) -> StatusEntry:
        level = self._level(vendor, options)
        messages: List[str] = []

        local_drift: Optional[bool] = None
        drifted: List[str] = []
        if not options.remote_only and entry is not None:
            for mapping in vendor.mappings:
                recorded = entry.checksums.get(mapping.destination)
                current = checksum_destination(self.repo_root / mapping.destination)
                if recorded is None or current != recorded:
                    drifted.append(mapping.destination)
            local_drift = bool(drifted)

        remote_drift: Optional[bool] = None
        remote_commit: Optional[str] = None
        remote_unreachable = False
        if not options.offline and entry is not None:
            try:
                remote_commit = call_with_retry(
                    self.git.list_remote_commit,
                    vendor.url,
                    vendor.ref,
                    policy=self.retry_policy,
                    exceptions=(NetworkError,),
                    sleep=self.sleep,
                )
                remote_drift = remote_commit != entry.commit
            except GitError as e:
                remote_unreachable = True
                messages.append(f"remote check failed: {e}")
                logger.warning("Remote check for '%s' failed: %s", vendor.name, e)

        license = vendor.license
        lookup_failed = False
        if not license and level is not ComplianceLevel.INFO and entry is not None and self.license_lookup:
            try:
                license = self.license_lookup.lookup(vendor.url, entry.commit, allow_fetch=not options.offline)
            except LicenseLookupError as e:
                lookup_failed = True
                logger.warning("License lookup for '%s' failed: %s", vendor.name, e)

        decision = self.policy.decide(license) if license and self.policy is not None else None

        verdict, verdict_messages = evaluate(
            level,
            ComplianceFacts(
                has_lock=entry is not None,
                local_drift=local_drift,
                remote_drift=remote_drift,
                license=license,
                license_lookup_failed=lookup_failed,
                remote_unreachable=remote_unreachable,
                policy_decision=decision,
            ),
        )

        return StatusEntry(
            vendor_name=vendor.name,
            ref=vendor.ref,
            compliance=level,
            verdict=verdict,
            locked_commit=entry.commit if entry else None,
            remote_commit=remote_commit,
            local_drift=local_drift,
            remote_drift=remote_drift,
            drifted_paths=tuple(drifted),
            license=license,
            policy_decision=decision.value if decision is not None else None,
            messages=tuple(messages + verdict_messages),
        )


__all__ = ["StatusOptions", "StatusReport", "StatusEngine"]
