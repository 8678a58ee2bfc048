"""License detection and compliance verdicts.

Verdict rules per compliance level:

- ``strict``: a license (declared or detected), a lock entry, and no drift
  of either kind. A failed license lookup or an unreachable remote yields
  ``unknown`` instead of ``pass`` as long as no drift was found.
- ``lenient``: a lock entry is enough; detected drift downgrades to ``warn``.
- ``info``: always ``pass``.

A known license is also put to the license policy: ``deny`` fails strict and
lenient vendors, ``warn`` downgrades a passing one to ``warn``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

from gitvendor.core.cache import IncrementalCache
from gitvendor.core.exceptions import CacheError, GitError, LicenseLookupError
from gitvendor.core.git import GitOperations
from gitvendor.core.models import ComplianceLevel, Tree, Verdict
from gitvendor.core.policy import PolicyDecision

logger = logging.getLogger(__name__)

LICENSE_FILES = (
    "LICENSE",
    "LICENSE.txt",
    "LICENSE.md",
    "COPYING",
    "COPYING.txt",
    "COPYING.md",
    "LICENSE-MIT",
    "LICENSE-APACHE",
    "LICENCE",
    "LICENCE.txt",
    "LICENCE.md",
)


class LicenseLookup(Protocol):
    """Detects the SPDX license of a vendor at a commit."""

    def lookup(self, url: str, commit: str, *, allow_fetch: bool = True) -> Optional[str]:
        """Return the SPDX id, or ``None`` when no license was found.

        With ``allow_fetch`` False only local data may be consulted.

        Raises:
            LicenseLookupError: When the lookup itself failed
        """
        ...


def parse_license_text(content: str) -> Optional[str]:
    """Identify a license from the text of a LICENSE file."""
    lower = content.lower()

    if "apache license" in lower and "version 2.0" in lower:
        return "Apache-2.0"
    if "mit license" in lower or (
        "permission is hereby granted, free of charge" in lower and "without restriction" in lower
    ):
        return "MIT"
    if "bsd" in lower and "redistribution" in lower:
        if "3. neither the name" in lower or lower.count("redistribution") >= 2:
            return "BSD-3-Clause"
        return "BSD-2-Clause"
    if "gnu lesser general public license" in lower:
        if "version 3" in lower:
            return "LGPL-3.0"
        if "version 2" in lower:
            return "LGPL-2.1"
        return "LGPL"
    if "gnu general public license" in lower:
        if "version 3" in lower:
            return "GPL-3.0"
        if "version 2" in lower:
            return "GPL-2.0"
        return "GPL"
    if "mozilla public license" in lower:
        return "MPL-2.0" if "version 2.0" in lower else "MPL"
    if "isc license" in lower or (
        "permission to use, copy, modify" in lower and "and/or sell copies" in lower
    ):
        return "ISC"
    if "unlicense" in lower or ("public domain" in lower and "waive all copyright" in lower):
        return "Unlicense"
    if "cc0" in lower or ("creative commons" in lower and "public domain dedication" in lower):
        return "CC0-1.0"
    return None


def detect_license(tree: Tree) -> Optional[str]:
    """Detect the license from the top-level license files of a tree."""
    for filename in LICENSE_FILES:
        content = tree.get(filename)
        if content is None:
            continue
        spdx = parse_license_text(content.decode("utf-8", errors="replace"))
        if spdx:
            return spdx
    return None


class TreeLicenseLookup:
    """:class:`LicenseLookup` reading license files of the locked commit.

    The cache is consulted first; on a miss the tree is fetched through git
    and stored for later runs. Without ``allow_fetch`` a miss is a failed
    lookup.
    """

    def __init__(self, git: GitOperations, cache: IncrementalCache) -> None:
        self.git = git
        self.cache = cache

    def lookup(self, url: str, commit: str, *, allow_fetch: bool = True) -> Optional[str]:
        try:
            tree, hit = self.cache.get(commit)
        except CacheError as e:
            logger.warning("Ignoring unreadable cache entry %s: %s", commit[:12], e)
            tree, hit = None, False
        if hit and tree is not None:
            return detect_license(tree)

        if not allow_fetch:
            raise LicenseLookupError(
                f"License lookup for commit {commit[:12]} needs the network (no cached tree)",
                context={"commit": commit},
            )
        try:
            tree = self.git.fetch_tree(url, commit)
        except GitError as e:
            raise LicenseLookupError(
                f"License lookup failed for commit {commit[:12]}: {e}",
                context={"commit": commit},
            ) from e
        try:
            self.cache.put(commit, tree)
        except CacheError as e:
            logger.warning("Could not cache %s: %s", commit[:12], e)
        return detect_license(tree)


@dataclass(frozen=True, slots=True)
class ComplianceFacts:
    """What the status checks learned about one vendor."""

    has_lock: bool
    local_drift: Optional[bool]
    remote_drift: Optional[bool]
    license: Optional[str] = None
    license_lookup_failed: bool = False
    remote_unreachable: bool = False
    policy_decision: Optional[PolicyDecision] = None


def evaluate(level: ComplianceLevel, facts: ComplianceFacts) -> Tuple[Verdict, List[str]]:
    """Compute the verdict and explanatory messages for one vendor."""
    messages: List[str] = []
    drifted = bool(facts.local_drift) or bool(facts.remote_drift)
    if facts.local_drift:
        messages.append("local files differ from the lock")
    if facts.remote_drift:
        messages.append("upstream ref moved past the locked commit")
    if not facts.has_lock:
        messages.append("vendor has never been synced")
    denied = facts.policy_decision is PolicyDecision.DENY
    flagged = facts.policy_decision is PolicyDecision.WARN
    if denied:
        messages.append(f"license {facts.license} is denied by the license policy")
    elif flagged:
        messages.append(f"license {facts.license} is flagged by the license policy")

    if level is ComplianceLevel.INFO:
        return Verdict.PASS, messages

    if level is ComplianceLevel.LENIENT:
        if not facts.has_lock or denied:
            return Verdict.FAIL, messages
        return (Verdict.WARN if drifted or flagged else Verdict.PASS), messages

    # strict
    if not facts.has_lock or drifted:
        return Verdict.FAIL, messages
    if not facts.license:
        if facts.license_lookup_failed:
            messages.append("license could not be determined")
            return Verdict.UNKNOWN, messages
        messages.append("no license declared or detected")
        return Verdict.FAIL, messages
    if denied:
        return Verdict.FAIL, messages
    if facts.remote_unreachable:
        messages.append("remote could not be checked")
        return Verdict.UNKNOWN, messages
    if flagged:
        return Verdict.WARN, messages
    return Verdict.PASS, messages

    if level is ComplianceLevel.LENIENT:
        if not facts.has_lock:
            return Verdict.FAIL, messages
        return (Verdict.WARN if drifted else Verdict.PASS), messages

    # strict
    if not facts.has_lock or drifted:
        return Verdict.FAIL, messages
    if not facts.license:
        if facts.license_lookup_failed:
            messages.append("license could not be determined")
            return Verdict.UNKNOWN, messages
        messages.append("no license declared or detected")
        return Verdict.FAIL, messages
    if facts.remote_unreachable:
        messages.append("remote could not be checked")
        return Verdict.UNKNOWN, messages
    return Verdict.PASS, messages


__all__ = [
    "LICENSE_FILES",
    "LicenseLookup",
    "TreeLicenseLookup",
    "ComplianceFacts",
    "parse_license_text",
    "detect_license",
    "evaluate",
]
