"""
git-vendor add-mapping command.

SUMMARY: Add a path mapping to a vendor
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

SUMMARY = "Add a path mapping to a vendor"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_vendor_name_arg(parser)
    parser.add_argument("mapping", metavar="FROM:TO", help="Upstream path and local destination")
    add_exclude_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    from gitvendor.core.config import ConfigStore

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        vendor = ConfigStore(repo_root).add_mapping(args.name, parse_mapping(args.mapping, args.exclude))
        added = vendor.mappings[-1]
        formatter.success(
            {"vendor": vendor.to_dict()},
            f"Added mapping {added.source} -> {added.destination} to '{vendor.name}'",
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
