"""
git-vendor pull command.

SUMMARY: Fetch vendors and write them into the tree at their target commits
"""
from __future__ import annotations

import argparse
import threading
from typing import Tuple

from gitvendor.cli import (
    OutputFormatter,
    add_dry_run_flag,
    add_force_flag,
    add_standard_flags,
    confirm,
    positive_int,
    prepare,
    short_commit,
)
from gitvendor.core.models import SyncOutcome

SUMMARY = "Fetch vendors and write them into the tree at their target commits"

_OUTCOME_LABELS = {
    SyncOutcome.SYNCED: "synced",
    SyncOutcome.UNCHANGED: "up to date",
    SyncOutcome.SKIPPED: "skipped",
    SyncOutcome.MODIFIED: "kept local changes",
    SyncOutcome.FAILED: "FAILED",
}


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "names",
        nargs="*",
        metavar="name",
        help="Vendor names to pull (all if omitted)",
    )
    add_dry_run_flag(parser)
    add_force_flag(parser, "Re-sync even when the lock and the tree already agree")
    parser.add_argument("--no-cache", action="store_true", help="Bypass the incremental cache for reads")
    parser.add_argument("--group", help="Only pull vendors in this group")
    parser.add_argument("--parallel", action="store_true", help="Sync vendors concurrently")
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=None,
        help="Worker count for parallel sync (implies --parallel)",
    )
    parser.add_argument("--locked", action="store_true", help="Use locked commits instead of resolving refs")
    parser.add_argument("--prune", action="store_true", help="Remove mappings whose source no longer exists upstream")
    parser.add_argument("--keep-local", action="store_true", help="Leave locally modified vendors untouched")
    parser.add_argument("--interactive", action="store_true", help="Ask before overwriting local modifications")
    parser.add_argument("--commit", action="store_true", help="Commit synced vendors and the lock with git")
    parser.add_argument("--local", action="store_true", help="Allow local filesystem repository URLs")
    add_standard_flags(parser)


def _worker_count(args: argparse.Namespace, default_workers: int) -> int:
    if args.workers is not None:
        return args.workers
    if args.parallel:
        return default_workers
    return 1


def _prompt_factory():
    prompt_lock = threading.Lock()

    def ask(name: str, modified: Tuple[str, ...]) -> bool:
        with prompt_lock:
            return confirm(f"Vendor '{name}' has local modifications in {', '.join(modified)}. Overwrite?")

    return ask


def main(args: argparse.Namespace) -> int:
    """Pull vendors."""
    from gitvendor.core.manager import VendorSyncManager
    from gitvendor.core.sync import SyncOptions

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, settings = prepare(args)
        manager = VendorSyncManager(repo_root, settings)
        options = SyncOptions(
            dry_run=args.dry_run,
            force=args.force,
            no_cache=args.no_cache,
            group=args.group,
            locked=args.locked,
            prune=args.prune,
            keep_local=args.keep_local,
            workers=_worker_count(args, settings.workers),
            names=tuple(args.names),
            allow_local=args.local,
            confirm_overwrite=_prompt_factory() if args.interactive else None,
        )
        report = manager.pull(options, commit=args.commit)

        if formatter.json_mode:
            formatter.json_output(report.to_dict())
            return report.exit_code

        if not report.results:
            formatter.text("No vendors configured.")
            return 0

        prefix = "[dry-run] " if report.dry_run else ""
        for result in report.results:
            label = _OUTCOME_LABELS[result.outcome]
            commit = short_commit(result.commit)
            line = f"{prefix}{result.vendor_name}: {label} ({commit})"
            if result.outcome is SyncOutcome.SYNCED and result.previous_commit and result.previous_commit != result.commit:
                line = f"{prefix}{result.vendor_name}: {label} ({short_commit(result.previous_commit)} -> {commit})"
            formatter.text(line)
            if args.verbose or report.dry_run:
                for change in result.changes:
                    formatter.text(f"    {change.action:<8} {change.path}")
            for pruned in result.pruned:
                formatter.text(f"    pruned   {pruned}")
            for warning in result.warnings:
                formatter.text(f"    warning: {warning}")
            if result.error:
                formatter.text(f"    error: {result.error}")

        summary = ", ".join(
            f"{report.count(outcome)} {outcome.value}" for outcome in SyncOutcome if report.count(outcome)
        )
        formatter.text("")
        formatter.text(f"{prefix}{summary}")
        if report.interrupted:
            formatter.text("Interrupted: remaining vendors were skipped")
        return report.exit_code

    except Exception as e:
        formatter.error(e)
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
