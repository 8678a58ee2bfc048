"""
Auto-discovery CLI dispatcher for git-vendor.

Scans ``gitvendor/cli/commands`` and registers every module found there.
Adding a new command = just add a .py file exposing ``SUMMARY``,
``register_args(parser)`` and ``main(args) -> int``. A module may also
declare ``ALIASES`` (extra command names).
"""

from __future__ import annotations

import argparse
import importlib
import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from gitvendor.cli._aliases import expand_deprecated_alias


@lru_cache(maxsize=1)
def discover_commands() -> Dict[str, Dict[str, Any]]:
    """Discover commands under cli/commands.

    Returns:
        Dict mapping command name to command info dict
    """
    commands_dir = Path(__file__).parent / "commands"
    commands: Dict[str, Dict[str, Any]] = {}

    if not commands_dir.exists():
        return commands

    for item in commands_dir.glob("*.py"):
        if item.name.startswith("_"):
            continue

        cmd_name = item.stem
        try:
            module = importlib.import_module(f"gitvendor.cli.commands.{cmd_name}")
        except ImportError as e:
            print(f"Warning: Could not import command {cmd_name}: {e}", file=sys.stderr)
            continue
        commands[cmd_name] = {
            "module": module,
            "summary": getattr(module, "SUMMARY", cmd_name),
            "aliases": list(getattr(module, "ALIASES", [])),
            "register_args": getattr(module, "register_args", None),
            "main": getattr(module, "main", None),
        }

    return commands


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser with auto-discovered commands.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="git-vendor",
        description="Vendor external git repositories at pinned commits",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
        metavar="<command>",
    )

    for cmd_name, cmd_info in sorted(discover_commands().items()):
        primary_name = cmd_name.replace("_", "-")
        aliases = [cmd_name] if primary_name != cmd_name else []
        aliases.extend(a for a in cmd_info["aliases"] if a not in aliases)
        cmd_parser = subparsers.add_parser(
            primary_name,
            aliases=aliases,
            help=cmd_info["summary"],
            description=cmd_info["summary"],
        )
        if cmd_info["register_args"]:
            cmd_info["register_args"](cmd_parser)
        if cmd_info["main"]:
            cmd_parser.set_defaults(_func=cmd_info["main"])

    return parser


def _get_version() -> str:
    from gitvendor import __version__

    return __version__


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the git-vendor CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if argv is None:
        argv = sys.argv[1:]

    argv = expand_deprecated_alias(argv)
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "command", None) or not getattr(args, "_func", None):
        parser.print_help()
        return 0

    try:
        result = args._func(args)
        return int(result or 0)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
