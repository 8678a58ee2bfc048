"""
git-vendor remove-mapping command.

SUMMARY: Remove a vendor's mapping by destination
"""
from __future__ import annotations

import argparse

from gitvendor.cli import OutputFormatter, add_standard_flags, add_vendor_name_arg, prepare

SUMMARY = "Remove a vendor's mapping by destination"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_vendor_name_arg(parser)
    parser.add_argument("destination", help="Local destination of the mapping to remove")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    from gitvendor.core.config import ConfigStore

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        vendor = ConfigStore(repo_root).remove_mapping(args.name, args.destination)
        formatter.success(
            {"vendor": vendor.to_dict()},
            f"Removed mapping to '{args.destination}' from '{vendor.name}'",
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
