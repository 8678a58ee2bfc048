"""Shared CLI utilities."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence, Tuple

from gitvendor.core.exceptions import ConfigError
from gitvendor.core.models import PathMapping
from gitvendor.core.paths import resolve_project_root
from gitvendor.core.settings import Settings, load_settings
from gitvendor.core.stdlib_logging import configure_stdlib_logging, suppress_lastresort_in_json_mode


def get_repo_root(args: argparse.Namespace) -> Path:
    """Get project root from ``--repo-root`` or auto-detect it."""
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).resolve()
    return resolve_project_root()


def prepare(args: argparse.Namespace) -> Tuple[Path, Settings]:
    """Resolve the project root, load settings and configure logging."""
    json_mode = bool(getattr(args, "json", False))
    if json_mode:
        suppress_lastresort_in_json_mode()
    repo_root = get_repo_root(args)
    settings = load_settings(repo_root)
    configure_stdlib_logging(
        level=settings.log_level,
        verbose=bool(getattr(args, "verbose", False)),
        log_path=settings.log_file,
        stderr=not json_mode,
    )
    return repo_root, settings


def parse_mapping(text: str, exclude: Sequence[str] = ()) -> PathMapping:
    """Parse ``FROM:TO`` into a :class:`PathMapping` with optional exclude globs."""
    source, sep, destination = text.partition(":")
    if not sep or not source or not destination:
        raise ConfigError(f"Invalid mapping '{text}' (expected FROM:TO)", context={"mapping": text})
    return PathMapping(source=source, destination=destination, exclude=tuple(exclude))


def confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal; non-interactive stdin means no."""
    if not sys.stdin or not sys.stdin.isatty():
        return False
    print(f"{prompt} [y/N] ", end="", file=sys.stderr, flush=True)
    answer = sys.stdin.readline().strip().lower()
    return answer in ("y", "yes")


__all__ = ["get_repo_root", "prepare", "parse_mapping", "confirm"]
