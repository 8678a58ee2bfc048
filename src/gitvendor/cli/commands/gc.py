"""
git-vendor gc command.

SUMMARY: Evict cached trees and mirrors no longer referenced by the lock or config
"""
from __future__ import annotations

import argparse

from gitvendor.cli import OutputFormatter, add_dry_run_flag, add_standard_flags, prepare

SUMMARY = "Evict cached trees and mirrors no longer referenced by the lock or config"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_dry_run_flag(parser)
    parser.add_argument(
        "--all",
        dest="clean_all",
        action="store_true",
        help="Remove every cache entry, referenced or not",
    )
    add_standard_flags(parser)


def _format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    value = float(size)
    for unit in ["B", "KB", "MB", "GB"]:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


def main(args: argparse.Namespace) -> int:
    """Run cache garbage collection."""
    from gitvendor.core.manager import VendorSyncManager

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, settings = prepare(args)
        result = VendorSyncManager(repo_root, settings).gc(dry_run=args.dry_run, clean_all=args.clean_all)

        if formatter.json_mode:
            formatter.json_output({
                "dry_run": args.dry_run,
                "removed_trees": list(result.removed_trees),
                "removed_mirrors": list(result.removed_mirrors),
                "bytes_freed": result.bytes_freed,
            })
            return 0

        verb = "Would remove" if args.dry_run else "Removed"
        if not result.removed_trees and not result.removed_mirrors:
            formatter.text("Nothing to clean up.")
            return 0
        formatter.text(f"{verb} {len(result.removed_trees)} cached tree(s) and {len(result.removed_mirrors)} mirror(s)")
        for commit in result.removed_trees:
            formatter.text(f"  tree   {commit[:12]}")
        for mirror in result.removed_mirrors:
            formatter.text(f"  mirror {mirror}")
        formatter.text(f"{'Would free' if args.dry_run else 'Freed'}: {_format_bytes(result.bytes_freed)}")
        return 0

    except Exception as e:
        formatter.error(e)
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
