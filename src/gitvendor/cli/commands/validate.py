"""
git-vendor validate command.

SUMMARY: Check the vendor config, lock and license policy without changing anything
"""
from __future__ import annotations

import argparse

from gitvendor.cli import OutputFormatter, add_standard_flags, prepare

SUMMARY = "Check the vendor config, lock and license policy without changing anything"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    """Validate config, lock and license policy; every mapping conflict is reported."""
    from gitvendor.core.config import ConfigStore
    from gitvendor.core.exceptions import GitVendorError, MappingConflictError
    from gitvendor.core.lock import LockStore
    from gitvendor.core.policy import load_license_policy

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        store = ConfigStore(repo_root)
        vendors = store.load()
        problems = []

        conflicts = store.find_conflicts(vendors)
        problems.extend(
            {"error": MappingConflictError.__name__, "message": c.describe()} for c in conflicts
        )
        if not conflicts:
            try:
                store.validate(vendors)
            except GitVendorError as e:
                problems.append({"error": type(e).__name__, "message": str(e)})

        try:
            lock = LockStore(repo_root).load()
        except GitVendorError as e:
            lock = {}
            problems.append({"error": type(e).__name__, "message": str(e)})

        try:
            load_license_policy(repo_root)
        except GitVendorError as e:
            problems.append({"error": type(e).__name__, "message": str(e)})

        configured = {v.name for v in vendors}
        orphaned = sorted(name for name in lock if name not in configured)

        data = {"valid": not problems, "vendors": len(vendors), "problems": problems, "orphaned_lock_entries": orphaned}
        if formatter.json_mode:
            formatter.json_output(data)
        else:
            for problem in problems:
                formatter.text(f"{problem['error']}: {problem['message']}")
            for name in orphaned:
                formatter.text(f"warning: lock entry '{name}' has no vendor in the config")
            if not problems:
                formatter.text(f"OK: {len(vendors)} vendor(s), config and lock are valid")
        return 0 if not problems else 1

    except Exception as e:
        formatter.error(e)
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
