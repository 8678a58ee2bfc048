"""Content checksums for mapping destinations.

A destination's checksum covers every file below it (or the single file it
names) as ``sha256:<hex>`` over sorted ``<relpath>\\0<file sha256>`` lines, so
it changes when a file is added, removed, renamed, or edited.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Dict, Mapping, Sequence

from gitvendor.core.models import Tree
from gitvendor.core.utils.globs import matches_exclude

SINGLE_FILE_KEY = "."


def digest_files(files: Mapping[str, bytes]) -> str:
    """Return the checksum of a destination file set."""
    h = hashlib.sha256()
    for rel in sorted(files):
        h.update(rel.encode("utf-8"))
        h.update(b"\0")
        h.update(hashlib.sha256(files[rel]).hexdigest().encode("ascii"))
        h.update(b"\n")
    return f"sha256:{h.hexdigest()}"


def extract_source(tree: Tree, source: str, exclude: Sequence[str] = ()) -> Dict[str, bytes] | None:
    """Select the files a mapping source names from a fetched tree.

    Returns paths relative to the source, with :data:`SINGLE_FILE_KEY` when
    the source is a single file, or ``None`` when the source is missing.
    ``exclude`` globs are matched against those relative paths (against the
    file name for a single-file source). A directory source whose files are
    all excluded yields an empty dict, not ``None``.
    """
    if source != "." and source in tree:
        name = source.rsplit("/", 1)[-1]
        if exclude and matches_exclude(name, exclude):
            return {}
        return {SINGLE_FILE_KEY: tree[source]}

    if source == ".":
        selected = dict(tree)
    else:
        prefix = source + "/"
        selected = {path[len(prefix):]: data for path, data in tree.items() if path.startswith(prefix)}
        if not selected:
            return None
    if exclude:
        selected = {rel: data for rel, data in selected.items() if not matches_exclude(rel, exclude)}
    return selected


def read_destination(path: Path) -> Dict[str, bytes] | None:
    """Read the current on-disk content of a destination.

    Returns ``None`` when nothing exists at ``path``.
    """
    path = Path(path)
    if path.is_file():
        return {SINGLE_FILE_KEY: path.read_bytes()}
    if not path.is_dir():
        return None

    files: Dict[str, bytes] = {}
    for dirpath, dirnames, filenames in os.walk(path):
        dirnames.sort()
        base = Path(dirpath)
        for filename in filenames:
            full = base / filename
            if not full.is_file():
                continue
            rel = full.relative_to(path).as_posix()
            files[rel] = full.read_bytes()
    return files


def checksum_destination(path: Path) -> str | None:
    """Checksum what is on disk at ``path`` (``None`` when missing)."""
    files = read_destination(path)
    if files is None:
        return None
    return digest_files(files)


__all__ = [
    "SINGLE_FILE_KEY",
    "digest_files",
    "extract_source",
    "read_destination",
    "checksum_destination",
]
