"""Central registry for git-vendor CLI aliases.

Deprecated commands are rewritten to their replacement before argparse sees
them, so they behave identically to the new spelling. Each use prints a
deprecation warning on stderr.
"""

from __future__ import annotations

import sys
from typing import Dict, List, Optional, Sequence, TextIO

# Deprecated command -> replacement argv prefix.
DEPRECATED_COMMANDS: Dict[str, List[str]] = {
    "sync": ["pull", "--locked"],
    "update": ["pull"],
    "verify": ["status", "--offline"],
    "outdated": ["status", "--remote-only"],
    "diff": ["status"],
}


def _command_index(argv: Sequence[str]) -> Optional[int]:
    """Index of the first non-option token (the command name)."""
    for i, token in enumerate(argv):
        if token == "--":
            return None
        if not token.startswith("-"):
            return i
    return None


def expand_deprecated_alias(argv: Sequence[str], *, stream: Optional[TextIO] = None) -> List[str]:
    """Rewrite a deprecated command in ``argv`` to its replacement.

    Returns a new list; ``argv`` is returned unchanged (as a copy) when the
    command is not deprecated.
    """
    args = list(argv)
    idx = _command_index(args)
    if idx is None:
        return args
    replacement = DEPRECATED_COMMANDS.get(args[idx])
    if replacement is None:
        return args
    print(
        f"Warning: '{args[idx]}' is deprecated; use '{' '.join(replacement)}' instead",
        file=stream or sys.stderr,
    )
    return args[:idx] + replacement + args[idx + 1:]


__all__ = ["DEPRECATED_COMMANDS", "expand_deprecated_alias"]
