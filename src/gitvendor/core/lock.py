"""Vendor lock file management.

The lock (``.git-vendor/vendor.lock``) records, per vendor, the commit that
was synced and the checksum of every mapping destination. Every write reads
the whole file, merges the changes and replaces the file atomically, so a
reader sees either the previous lock or the new one, never a mix.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

import yaml

from gitvendor.core.exceptions import LockCorruptError, LockError, VendorNotFoundError
from gitvendor.core.models import LockEntry
from gitvendor.core.paths import lock_path
from gitvendor.core.schemas import SchemaValidationError, validate_document
from gitvendor.core.utils.io import read_yaml, write_yaml

logger = logging.getLogger(__name__)

_CORRUPT_GUIDANCE = (
    "Restore it from version control, or delete it and run 'git-vendor pull' "
    "to re-resolve every vendor."
)


class LockStore:
    """Reads and atomically rewrites the lock file."""

    def __init__(self, repo_root: Path, path: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root)
        self.path = Path(path) if path is not None else lock_path(self.repo_root)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Dict[str, LockEntry]:
        """Load lock entries keyed by vendor name.

        A missing lock is empty. Anything unreadable is reported rather than
        repaired.

        Raises:
            LockCorruptError: If the file cannot be read, parsed, or validated
        """
        try:
            data = read_yaml(self.path, default={}, raise_on_error=True)
        except (OSError, yaml.YAMLError) as e:
            raise LockCorruptError(
                f"Lock file {self.path} is unreadable: {e}. {_CORRUPT_GUIDANCE}",
                context={"path": str(self.path)},
            ) from e

        try:
            validate_document(data, "lock.schema.yaml")
        except SchemaValidationError as e:
            raise LockCorruptError(
                f"Lock file {self.path} is malformed: {e}. {_CORRUPT_GUIDANCE}",
                context={"path": str(self.path), "errors": e.errors},
            ) from e

        entries: Dict[str, LockEntry] = {}
        for item in data.get("vendors") or []:
            entry = LockEntry.from_dict(item)
            if entry.name in entries:
                raise LockCorruptError(
                    f"Lock file {self.path} lists '{entry.name}' twice. {_CORRUPT_GUIDANCE}",
                    context={"path": str(self.path), "vendor": entry.name},
                )
            entries[entry.name] = entry
        return entries

    def _write(self, entries: Mapping[str, LockEntry]) -> None:
        data = {"vendors": [entries[name].to_dict() for name in sorted(entries)]}
        try:
            write_yaml(self.path, data)
        except OSError as e:
            raise LockError(f"Cannot write lock file {self.path}: {e}", context={"path": str(self.path)}) from e

    def update(self, name: str, entry: LockEntry) -> None:
        """Insert or replace one entry."""
        if entry.name != name:
            raise LockError(
                f"Lock entry name '{entry.name}' does not match '{name}'",
                context={"vendor": name},
            )
        self.update_many([entry])

    def update_many(self, entries: Iterable[LockEntry], removed: Iterable[str] = ()) -> None:
        """Merge ``entries`` and drop ``removed`` in a single atomic write."""
        current = self.load()
        changed = list(entries)
        for entry in changed:
            current[entry.name] = entry
        dropped = [name for name in removed if current.pop(name, None) is not None]
        self._write(current)
        logger.info(
            "Wrote lock %s (%d updated, %d removed, %d total)",
            self.path,
            len(changed),
            len(dropped),
            len(current),
        )

    def rename(self, old: str, new: str) -> None:
        current = self.load()
        if old not in current:
            raise VendorNotFoundError(f"Lock has no entry for '{old}'", context={"vendor": old})
        if new in current:
            raise LockError(f"Lock already has an entry for '{new}'", context={"vendor": new})
        current[new] = current.pop(old).renamed(new)
        self._write(current)

    def remove(self, name: str) -> bool:
        """Drop an entry; returns False when there was nothing to remove."""
        current = self.load()
        if current.pop(name, None) is None:
            return False
        self._write(current)
        return True


__all__ = ["LockStore"]
