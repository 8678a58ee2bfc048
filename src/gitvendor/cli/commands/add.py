"""
git-vendor add command.

SUMMARY: Add a vendor to the config
"""
from __future__ import annotations

import argparse

from gitvendor.cli import (
    OutputFormatter,
    add_compliance_arg,
    add_standard_flags,
    add_vendor_name_arg,
    parse_mapping,
    prepare,
)

SUMMARY = "Add a vendor to the config"
ALIASES = ["create"]


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_vendor_name_arg(parser)
    parser.add_argument("url", help="Git repository URL")
    parser.add_argument("--ref", default="main", help="Branch, tag or commit to track (default: main)")
    parser.add_argument(
        "--mapping",
        "-m",
        action="append",
        dest="mappings",
        metavar="FROM:TO",
        required=True,
        help="Path mapping from the upstream repo to the local tree (repeatable)",
    )
    add_compliance_arg(parser, help_text="Compliance level (default: lenient)")
    parser.add_argument("--license", help="Declared SPDX license identifier")
    parser.add_argument("--group", help="Group tag for batch operations")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    """Add a vendor."""
    from gitvendor.core.config import ConfigStore
    from gitvendor.core.models import ComplianceLevel, VendorDefinition
    from gitvendor.core.redaction import redact_url_credentials

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        vendor = VendorDefinition(
            name=args.name,
            url=args.url,
            ref=args.ref,
            mappings=tuple(parse_mapping(m) for m in args.mappings),
            compliance=ComplianceLevel(args.compliance or ComplianceLevel.LENIENT.value),
            license=args.license,
            group=args.group,
        )
        saved = ConfigStore(repo_root).add_vendor(vendor)
        formatter.success(
            {"vendor": saved.to_dict()},
            f"Added vendor '{saved.name}' ({redact_url_credentials(saved.url)} @ {saved.ref})",
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
