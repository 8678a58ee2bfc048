"""
git-vendor rename command.

SUMMARY: Rename a vendor in the config and the lock
"""
from __future__ import annotations

import argparse

from gitvendor.cli import OutputFormatter, add_standard_flags, prepare

SUMMARY = "Rename a vendor in the config and the lock"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("old_name", help="Current vendor name")
    parser.add_argument("new_name", help="New vendor name")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    from gitvendor.core.config import ConfigStore
    from gitvendor.core.lock import LockStore

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        vendor = ConfigStore(repo_root).rename_vendor(
            args.old_name,
            args.new_name,
            lock_store=LockStore(repo_root),
        )
        formatter.success(
            {"old_name": args.old_name, "vendor": vendor.to_dict()},
            f"Renamed vendor '{args.old_name}' to '{vendor.name}'",
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
