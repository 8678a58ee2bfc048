"""
git-vendor status command.

SUMMARY: Report local drift, remote drift and compliance for every vendor
"""
from __future__ import annotations

import argparse

from gitvendor.cli import (
    OutputFormatter,
    add_compliance_arg,
    add_standard_flags,
    prepare,
    short_commit,
)
from gitvendor.core.models import Verdict

SUMMARY = "Report local drift, remote drift and compliance for every vendor"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "names",
        nargs="*",
        metavar="name",
        help="Vendor names to check (all if omitted)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--offline", action="store_true", help="Skip remote checks")
    mode.add_argument("--remote-only", action="store_true", help="Skip local checksum checks")
    parser.add_argument("--strict-only", action="store_true", help="Only report vendors at strict compliance")
    add_compliance_arg(parser, help_text="Override every vendor's compliance level")
    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    parser.add_argument("--quiet", "-q", action="store_true", help="Print nothing; only set the exit code")
    add_standard_flags(parser)


def _drift_label(value) -> str:
    if value is None:
        return "-"
    return "yes" if value else "no"


def main(args: argparse.Namespace) -> int:
    """Show vendor status."""
    from gitvendor.core.manager import VendorSyncManager
    from gitvendor.core.models import ComplianceLevel
    from gitvendor.core.status import StatusOptions

    if args.format == "json":
        args.json = True
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, settings = prepare(args)
        manager = VendorSyncManager(repo_root, settings)
        options = StatusOptions(
            offline=args.offline,
            remote_only=args.remote_only,
            strict_only=args.strict_only,
            compliance_override=ComplianceLevel(args.compliance) if args.compliance else None,
            names=tuple(args.names),
        )
        report = manager.status(options)

        if args.quiet:
            return report.exit_code

        if formatter.json_mode:
            formatter.json_output(report.to_dict())
            return report.exit_code

        if not report.entries:
            formatter.text("No vendors to report.")
        else:
            rows = [
                [
                    e.vendor_name,
                    e.ref,
                    short_commit(e.locked_commit),
                    short_commit(e.remote_commit),
                    _drift_label(e.local_drift),
                    _drift_label(e.remote_drift),
                    e.license or "-",
                    e.compliance.value,
                    e.verdict.value.upper(),
                ]
                for e in report.entries
            ]
            formatter.table(
                ["VENDOR", "REF", "LOCKED", "REMOTE", "LOCAL DRIFT", "REMOTE DRIFT", "LICENSE", "LEVEL", "VERDICT"],
                rows,
            )
            for entry in report.entries:
                for path in entry.drifted_paths:
                    formatter.text(f"  {entry.vendor_name}: modified {path}")
                for message in entry.messages:
                    formatter.text(f"  {entry.vendor_name}: {message}")

        for name in report.orphaned:
            formatter.text(f"Orphaned lock entry: {name} (not in config)")

        formatter.text("")
        formatter.text(", ".join(f"{report.count(v)} {v.value}" for v in Verdict))
        return report.exit_code

    except Exception as e:
        formatter.error(e)
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
