"""
git-vendor update-mapping command.

SUMMARY: Replace a vendor's mapping in place
"""
from __future__ import annotations

import argparse

from gitvendor.cli import (
    OutputFormatter,
    add_exclude_arg,
    add_standard_flags,
    add_vendor_name_arg,
    parse_mapping,
    prepare,
)

SUMMARY = "Replace a vendor's mapping in place"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_vendor_name_arg(parser)
    parser.add_argument("destination", help="Local destination of the mapping to replace")
    parser.add_argument("mapping", metavar="FROM:TO", help="New upstream path and local destination")
    add_exclude_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    from gitvendor.core.config import ConfigStore

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        mapping = parse_mapping(args.mapping, args.exclude)
        vendor = ConfigStore(repo_root).update_mapping(args.name, args.destination, mapping)
        formatter.success(
            {"vendor": vendor.to_dict()},
            f"Updated mapping '{args.destination}' of '{vendor.name}'",
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
