"""Commit vendored changes to the project repository (``pull --commit``)."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from gitvendor.core.git import run_git
from gitvendor.core.models import LockEntry
from gitvendor.core.paths import VENDOR_DIR

logger = logging.getLogger(__name__)


def commit_message(entries: Iterable[LockEntry]) -> str:
    """Build a commit message with one ``Vendor-*`` trailer group per vendor."""
    ordered = sorted(entries, key=lambda e: e.name)
    names = ", ".join(e.name for e in ordered)
    lines = [f"chore(vendor): update {names}", ""]
    for entry in ordered:
        lines.append(f"Vendor-Name: {entry.name}")
        lines.append(f"Vendor-Ref: {entry.ref}")
        lines.append(f"Vendor-Commit: {entry.commit}")
    return "\n".join(lines) + "\n"


def commit_vendor_changes(
    repo_root: Path,
    entries: List[LockEntry],
    paths: Iterable[str],
    *,
    binary: str = "git",
) -> bool:
    """Stage the lock, config and destinations, then commit them.

    Returns:
        False when there was nothing to commit
    """
    if not entries:
        return False
    stage = sorted({VENDOR_DIR + "/vendor.lock", VENDOR_DIR + "/vendor.yml", *paths})
    existing = [p for p in stage if (Path(repo_root) / p).exists()]
    removed = [p for p in stage if p not in existing]
    if existing:
        run_git(["add", "--all", "--", *existing], cwd=repo_root, binary=binary)
    if removed:
        # Pruned destinations are staged as deletions.
        run_git(["rm", "-r", "-q", "--cached", "--ignore-unmatch", "--", *removed], cwd=repo_root, binary=binary)

    status = run_git(["diff", "--cached", "--name-only"], cwd=repo_root, binary=binary)
    if not status.stdout.strip():
        logger.info("Nothing to commit")
        return False

    run_git(["commit", "--no-verify", "-m", commit_message(entries)], cwd=repo_root, binary=binary)
    logger.info("Committed vendor update for %d vendor(s)", len(entries))
    return True


__all__ = ["commit_message", "commit_vendor_changes"]
