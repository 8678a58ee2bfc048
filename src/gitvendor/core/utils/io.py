"""File I/O utilities for gitvendor.

Single source of truth for safe file access patterns:
- Atomic text and binary writes (temp file + fsync + rename) with advisory locks
- YAML read/write with consistent error handling
- Atomic replacement of whole destination trees

Every persisted record (config, lock, cache entry, vendored file) goes
through this module so that an interrupted run never leaves a torn file.
"""
from __future__ import annotations

import fcntl
import os
import shutil
import tempfile
import uuid
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Callable, ContextManager, Mapping, Optional, TextIO, Union

import yaml

PathLike = Union[str, Path]


def ensure_parent_dir(path: Path) -> None:
    """Ensure the parent directory for ``path`` exists."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def ensure_directory(path: Path, create: bool = True) -> Path:
    """Ensure directory exists.

    Args:
        path: Directory path to check/create
        create: If True, create directory if missing; if False, raise if missing

    Returns:
        Path: The directory path

    Raises:
        FileNotFoundError: If create=False and directory doesn't exist
        NotADirectoryError: If path exists but is not a directory
    """
    path = Path(path)

    if path.exists():
        if not path.is_dir():
            raise NotADirectoryError(f"Path exists but is not a directory: {path}")
        return path

    if create:
        path.mkdir(parents=True, exist_ok=True)
        return path
    raise FileNotFoundError(f"Directory does not exist: {path}")


def atomic_write(
    path: Path,
    write_fn: Callable[[TextIO], None],
    *,
    lock_cm: Optional[ContextManager[Any]] = None,
    encoding: str = "utf-8",
) -> None:
    """Write to ``path`` atomically using a temp file + fsync + rename.

    - Parent directory is created if missing
    - Data is written to a temporary file in the same directory
    - File is fsync'd, unlocked, then atomically replaced
    - Any leftover temp file is cleaned up on failure

    Args:
        path: Target file path
        write_fn: Callable that writes content to the file object
        lock_cm: Optional context manager for file locking
        encoding: Text encoding (default: utf-8)
    """
    path = Path(path)
    ensure_parent_dir(path)

    lock_context = lock_cm or nullcontext()
    tmp_path: Optional[Path] = None
    try:
        with lock_context:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=encoding,
                dir=str(path.parent),
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                write_fn(f)
                f.flush()
                os.fsync(f.fileno())
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

            os.replace(str(tmp_path), str(path))
    finally:
        if tmp_path is not None and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                # Best-effort cleanup; never fail callers on temp removal
                pass


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Atomically write ``data`` to ``path`` (binary counterpart of :func:`atomic_write`)."""
    path = Path(path)
    ensure_parent_dir(path)

    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(str(tmp_path), str(path))
    finally:
        if tmp_path is not None and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass


def read_yaml(path: Path, default: Any = None, raise_on_error: bool = False) -> Any:
    """Read YAML with error handling.

    Returns ``default`` if the file is missing or invalid, unless
    ``raise_on_error`` is True, in which case parse errors propagate
    (a missing file still returns ``default``).
    """
    path = Path(path)
    if not path.exists():
        return default

    try:
        with open(path, "r", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            data = yaml.safe_load(f)
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        return data if data is not None else default
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default


def write_yaml(path: Path, data: Any, *, sort_keys: bool = False) -> None:
    """Atomically write YAML data to ``path``.

    Key order is preserved by default so records keep their declared layout;
    callers sort collections themselves for deterministic output.
    """

    def _writer(f: TextIO) -> None:
        yaml.safe_dump(
            data,
            f,
            default_flow_style=False,
            sort_keys=sort_keys,
            allow_unicode=True,
        )

    atomic_write(Path(path), _writer)


def _remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def replace_tree(destination: Path, files: Mapping[str, bytes]) -> None:
    """Atomically replace ``destination`` with exactly ``files``.

    ``files`` maps posix paths relative to ``destination`` to content. The
    single key ``"."`` means ``destination`` is a regular file.

    Directory content is staged in a hidden sibling directory and swapped in
    with two renames, so readers see either the old or the new tree.
    """
    destination = Path(destination)
    ensure_parent_dir(destination)

    if set(files) == {"."}:
        if destination.is_dir() and not destination.is_symlink():
            shutil.rmtree(destination)
        atomic_write_bytes(destination, files["."])
        return

    token = uuid.uuid4().hex[:12]
    staging = destination.parent / f".{destination.name}.gv-stage-{token}"
    backup = destination.parent / f".{destination.name}.gv-old-{token}"
    try:
        staging.mkdir(parents=True)
        for rel, content in files.items():
            target = staging / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

        had_previous = destination.exists() or destination.is_symlink()
        if had_previous:
            os.replace(str(destination), str(backup))
        os.replace(str(staging), str(destination))
        if had_previous:
            _remove_path(backup)
    finally:
        if staging.exists():
            shutil.rmtree(staging, ignore_errors=True)


def remove_tree(destination: Path) -> bool:
    """Remove a file or directory; returns True when something was removed."""
    destination = Path(destination)
    if not (destination.exists() or destination.is_symlink()):
        return False
    _remove_path(destination)
    return True


__all__ = [
    "PathLike",
    "ensure_parent_dir",
    "ensure_directory",
    "atomic_write",
    "atomic_write_bytes",
    "read_yaml",
    "write_yaml",
    "replace_tree",
    "remove_tree",
]
