"""
git-vendor edit command.

SUMMARY: Change a vendor's url, ref, compliance, license or group
"""
from __future__ import annotations

import argparse

from gitvendor.cli import (
    OutputFormatter,
    add_compliance_arg,
    add_standard_flags,
    add_vendor_name_arg,
    prepare,
)

SUMMARY = "Change a vendor's url, ref, compliance, license or group"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments.

    An empty string for ``--license`` or ``--group`` clears the field.
    """
    add_vendor_name_arg(parser)
    parser.add_argument("--url", help="New repository URL")
    parser.add_argument("--ref", help="New branch, tag or commit to track")
    add_compliance_arg(parser, help_text="New compliance level")
    parser.add_argument("--license", default=None, help="Declared SPDX license ('' clears)")
    parser.add_argument("--group", default=None, help="Group tag ('' clears)")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    from gitvendor.core.config import ConfigStore

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        changes = {}
        if args.license is not None:
            changes["license"] = args.license
        if args.group is not None:
            changes["group"] = args.group
        if not (args.url or args.ref or args.compliance or changes):
            raise ValueError("Nothing to change: pass at least one of --url, --ref, --compliance, --license, --group")

        vendor = ConfigStore(repo_root).update_vendor(
            args.name,
            url=args.url,
            ref=args.ref,
            compliance=args.compliance,
            **changes,
        )
        formatter.success({"vendor": vendor.to_dict()}, f"Updated vendor '{vendor.name}'")
        return 0
    except Exception as e:
        formatter.error(e)
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
