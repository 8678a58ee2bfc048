"""
Project initialization command.

SUMMARY: Create .git-vendor/ with an empty vendor config
"""

from __future__ import annotations

import argparse
from pathlib import Path

from gitvendor.cli import OutputFormatter, add_json_flag, add_verbose_flag
from gitvendor.core.paths import VENDOR_DIR, config_path, vendor_dir

SUMMARY = "Create .git-vendor/ with an empty vendor config"

_GITIGNORE = "# git-vendor local state\n.cache/\n"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register CLI arguments for ``git-vendor init``."""

    parser.add_argument(
        "project_path",
        nargs="?",
        default=".",
        help="Project directory to initialize (defaults to current directory)",
    )
    add_json_flag(parser)
    add_verbose_flag(parser)


def _ensure_structure(project_root: Path) -> list[str]:
    """Create the vendor directory, config and .gitignore; return created paths."""
    from gitvendor.core.config import ConfigStore

    created: list[str] = []
    root = vendor_dir(project_root)
    if not root.exists():
        root.mkdir(parents=True)
        created.append(VENDOR_DIR)

    gitignore = root / ".gitignore"
    if not gitignore.exists():
        gitignore.write_text(_GITIGNORE, encoding="utf-8")
        created.append(f"{VENDOR_DIR}/.gitignore")

    store = ConfigStore(project_root)
    if not store.exists():
        store.save([])
        created.append(config_path(project_root).relative_to(project_root).as_posix())
    return created


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        project_root = Path(args.project_path).expanduser().resolve()
        if not project_root.is_dir():
            raise NotADirectoryError(f"Project directory does not exist: {project_root}")
        created = _ensure_structure(project_root)
        message = (
            f"Initialized git-vendor in {project_root}"
            if created
            else f"git-vendor is already initialized in {project_root}"
        )
        formatter.success({"project_root": str(project_root), "created": created}, message)
        return 0
    except Exception as e:
        formatter.error(e, error_code="init_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
