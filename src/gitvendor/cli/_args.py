"""Common CLI argument registration utilities.

This module provides reusable argument registration functions to reduce
duplication across CLI commands.
"""
from __future__ import annotations

import argparse

from gitvendor.core.models import ComplianceLevel

COMPLIANCE_CHOICES = [level.value for level in ComplianceLevel]


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Override project root path",
    )


def add_force_flag(parser: argparse.ArgumentParser, help_text: str = "Force operation") -> None:
    parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help=help_text,
    )


def add_dry_run_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Show what would be done without making changes",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (debug) logging on stderr",
    )


def add_vendor_name_arg(parser: argparse.ArgumentParser, help_text: str = "Vendor name") -> None:
    parser.add_argument("name", help=help_text)


def add_exclude_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Do not copy files matching GLOB, relative to the source (repeatable; ** spans directories)",
    )


def add_compliance_arg(parser: argparse.ArgumentParser, *, flag: str = "--compliance", help_text: str) -> None:
    parser.add_argument(
        flag,
        dest="compliance",
        choices=COMPLIANCE_CHOICES,
        default=None,
        help=help_text,
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add the flags every command accepts (--json, --repo-root, --verbose)."""
    add_json_flag(parser)
    add_repo_root_flag(parser)
    add_verbose_flag(parser)


def positive_int(value: str) -> int:
    """argparse type for integers >= 1."""
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from e
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


__all__ = [
    "COMPLIANCE_CHOICES",
    "add_json_flag",
    "add_repo_root_flag",
    "add_force_flag",
    "add_dry_run_flag",
    "add_verbose_flag",
    "add_vendor_name_arg",
    "add_compliance_arg",
    "add_exclude_arg",
    "add_standard_flags",
    "positive_int",
]
