"""
git-vendor remove command.

SUMMARY: Remove a vendor from the config and the lock
"""
from __future__ import annotations

import argparse

from gitvendor.cli import OutputFormatter, add_standard_flags, add_vendor_name_arg, prepare

SUMMARY = "Remove a vendor from the config and the lock"
ALIASES = ["delete"]


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_vendor_name_arg(parser, "Vendor to remove")
    parser.add_argument(
        "--delete-files",
        action="store_true",
        help="Also delete the vendor's destination paths from the tree",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    """Remove a vendor."""
    from gitvendor.core.config import ConfigStore
    from gitvendor.core.lock import LockStore
    from gitvendor.core.utils.io import remove_tree

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        store = ConfigStore(repo_root)
        vendor = store.get(args.name)
        store.remove_vendor(args.name, lock_store=LockStore(repo_root))

        deleted = []
        if args.delete_files:
            for mapping in vendor.mappings:
                if remove_tree(repo_root / mapping.destination):
                    deleted.append(mapping.destination)

        formatter.success(
            {"vendor": args.name, "deleted_paths": deleted},
            f"Removed vendor '{args.name}'",
        )
        return 0
    except Exception as e:
        formatter.error(e)
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
