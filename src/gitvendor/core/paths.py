"""Project layout and mapping path rules.

All gitvendor state lives under ``.git-vendor/`` in the project root:

    .git-vendor/vendor.yml      vendor definitions
    .git-vendor/vendor.lock     resolved pins and checksums
    .git-vendor/settings.yaml   optional project settings
    .git-vendor/policy.yml      optional license policy
    .git-vendor/.cache/         incremental tree cache and git mirrors
"""
from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from gitvendor.core.exceptions import InvalidPathError

VENDOR_DIR = ".git-vendor"
CONFIG_FILE = "vendor.yml"
LOCK_FILE = "vendor.lock"
SETTINGS_FILE = "settings.yaml"
POLICY_FILE = "policy.yml"


def vendor_dir(repo_root: Path) -> Path:
    return Path(repo_root) / VENDOR_DIR


def config_path(repo_root: Path) -> Path:
    return vendor_dir(repo_root) / CONFIG_FILE


def lock_path(repo_root: Path) -> Path:
    return vendor_dir(repo_root) / LOCK_FILE


def settings_path(repo_root: Path) -> Path:
    return vendor_dir(repo_root) / SETTINGS_FILE


def policy_path(repo_root: Path) -> Path:
    return vendor_dir(repo_root) / POLICY_FILE


def resolve_project_root(start: Path | None = None) -> Path:
    """Find the project root by walking up from ``start`` (default: cwd).

    The first directory containing ``.git-vendor/`` wins, then the first
    containing ``.git``; otherwise ``start`` itself is the root.
    """
    origin = Path(start or os.getcwd()).resolve()
    candidates = [origin, *origin.parents]
    for marker in (VENDOR_DIR, ".git"):
        for candidate in candidates:
            if (candidate / marker).exists():
                return candidate
    return origin


def normalize_mapping_path(raw: str, *, kind: str = "destination") -> str:
    """Normalize a mapping path to a clean relative posix form.

    ``src/`` and ``./src`` both become ``src``; an empty path or ``.`` is
    the repository root, which is only allowed for sources.

    Raises:
        InvalidPathError: For absolute, ``~``-prefixed, or traversing paths
    """
    text = str(raw).strip().replace("\\", "/")
    if text.startswith("~"):
        raise InvalidPathError(
            f"Unsafe {kind} path '{raw}' (must not start with '~')",
            context={"path": raw, "kind": kind},
        )
    if text.startswith("/") or PurePosixPath(text).is_absolute() or (len(text) > 1 and text[1] == ":"):
        raise InvalidPathError(
            f"Unsafe {kind} path '{raw}' (must be relative)",
            context={"path": raw, "kind": kind},
        )

    parts = [p for p in text.split("/") if p not in ("", ".")]
    if ".." in parts:
        raise InvalidPathError(
            f"Unsafe {kind} path '{raw}' (escapes the project root)",
            context={"path": raw, "kind": kind},
        )
    if not parts:
        if kind == "destination":
            raise InvalidPathError(
                f"Destination path '{raw}' must not be the project root",
                context={"path": raw, "kind": kind},
            )
        return "."
    return "/".join(parts)


def paths_overlap(a: str, b: str) -> bool:
    """True when one normalized path equals or contains the other."""
    if a == b:
        return True
    return a.startswith(b + "/") or b.startswith(a + "/")


def is_reserved_destination(destination: str) -> bool:
    """Destinations may not write into gitvendor's own state or git metadata."""
    head = destination.split("/", 1)[0]
    return head in (VENDOR_DIR, ".git")


__all__ = [
    "VENDOR_DIR",
    "CONFIG_FILE",
    "LOCK_FILE",
    "SETTINGS_FILE",
    "POLICY_FILE",
    "vendor_dir",
    "config_path",
    "lock_path",
    "settings_path",
    "policy_path",
    "resolve_project_root",
    "normalize_mapping_path",
    "paths_overlap",
    "is_reserved_destination",
]
