"""
git-vendor CLI package.

Provides the command-line interface with auto-discovery of commands from
``cli/commands``.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared CLI utilities
"""
from ._output import OutputFormatter, short_commit
from ._args import (
    add_json_flag,
    add_repo_root_flag,
    add_force_flag,
    add_dry_run_flag,
    add_verbose_flag,
    add_vendor_name_arg,
    add_compliance_arg,
    add_exclude_arg,
    add_standard_flags,
    positive_int,
)
from ._utils import (
    get_repo_root,
    prepare,
    parse_mapping,
    confirm,
)

__all__ = [
    # Output formatting
    "OutputFormatter",
    "short_commit",
    # Argument helpers
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
    # Utilities
    "get_repo_root",
    "prepare",
    "parse_mapping",
    "confirm",
]
