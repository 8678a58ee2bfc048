"""
git-vendor list command.

SUMMARY: List configured vendors and their locked commits
"""
from __future__ import annotations

import argparse

from gitvendor.cli import OutputFormatter, add_standard_flags, prepare, short_commit

SUMMARY = "List configured vendors and their locked commits"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument("--group", help="Only list vendors in this group")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    """List vendors."""
    from gitvendor.core.config import ConfigStore
    from gitvendor.core.lock import LockStore
    from gitvendor.core.redaction import redact_url_credentials

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        vendors = ConfigStore(repo_root).load()
        lock = LockStore(repo_root).load()
        if args.group:
            vendors = [v for v in vendors if v.group == args.group]

        if formatter.json_mode:
            vendors_data = []
            for vendor in vendors:
                entry = lock.get(vendor.name)
                data = vendor.to_dict()
                data["url"] = redact_url_credentials(vendor.url)
                data["locked_commit"] = entry.commit if entry else None
                vendors_data.append(data)
            formatter.json_output({"vendors": vendors_data})
            return 0

        if not vendors:
            formatter.text("No vendors configured.")
            formatter.text("")
            formatter.text("Add one with:")
            formatter.text("  git-vendor add <name> <url> --ref <ref> --mapping <from>:<to>")
            return 0

        formatter.table(
            ["NAME", "REF", "LOCKED", "COMPLIANCE", "GROUP", "URL"],
            [
                [
                    v.name,
                    v.ref,
                    short_commit(lock[v.name].commit if v.name in lock else None),
                    v.compliance.value,
                    v.group or "-",
                    redact_url_credentials(v.url),
                ]
                for v in vendors
            ],
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
