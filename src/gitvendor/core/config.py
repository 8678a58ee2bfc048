"""Vendor configuration store.

Vendor definitions live in ``.git-vendor/vendor.yml``::

    vendors:
      - name: left-pad
        url: https://github.com/left-pad/left-pad.git
        ref: v1.0.0
        compliance: lenient
        mapping:
          - from: src
            to: vendor/left-pad
            exclude: ["**/*.test.js"]

Every mutation loads the current file, applies the change to a copy,
validates the complete result, and only then replaces the file atomically.
A rejected mutation leaves the file untouched.
"""
from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

import yaml

from gitvendor.core.exceptions import (
    ConfigError,
    DuplicateNameError,
    LockError,
    VendorNotFoundError,
)
from gitvendor.core.models import ComplianceLevel, PathConflict, PathMapping, VendorDefinition
from gitvendor.core.paths import config_path, normalize_mapping_path
from gitvendor.core.schemas import SchemaValidationError, validate_document
from gitvendor.core.utils.io import read_yaml, write_yaml
from gitvendor.core.validation import find_conflicts, normalize_mapping, validate_name, validate_vendors

logger = logging.getLogger(__name__)

# Distinguishes "leave unchanged" from "clear" in update_vendor.
_UNSET: Any = object()


class ConfigStore:
    """Load, validate and mutate vendor definitions."""

    def __init__(self, repo_root: Path, path: Optional[Path] = None) -> None:
        """Initialize the store.

        Args:
            repo_root: Project root
            path: Override for the config file location
        """
        self.repo_root = Path(repo_root)
        self.path = Path(path) if path is not None else config_path(self.repo_root)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> List[VendorDefinition]:
        """Load vendor definitions (empty when the file does not exist).

        Raises:
            ConfigError: If the file cannot be read, parsed, or fails the schema
        """
        try:
            data = read_yaml(self.path, default={}, raise_on_error=True)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read {self.path}: {e}", context={"path": str(self.path)}) from e

        try:
            validate_document(data, "config.schema.yaml")
        except SchemaValidationError as e:
            raise ConfigError(
                f"Invalid vendor config {self.path}: {e}",
                context={"path": str(self.path), "errors": e.errors},
            ) from e

        return [VendorDefinition.from_dict(item) for item in data.get("vendors") or []]

    def save(self, vendors: List[VendorDefinition]) -> List[VendorDefinition]:
        """Validate ``vendors`` and atomically replace the config file.

        Returns:
            The definitions as written (mapping paths normalized)
        """
        checked = validate_vendors(vendors)
        try:
            write_yaml(self.path, {"vendors": [v.to_dict() for v in checked]})
        except OSError as e:
            raise ConfigError(f"Cannot write {self.path}: {e}", context={"path": str(self.path)}) from e
        logger.debug("Wrote %d vendor definition(s) to %s", len(checked), self.path)
        return checked

    def validate(self, vendors: Optional[List[VendorDefinition]] = None) -> List[VendorDefinition]:
        """Run every structural check without writing anything."""
        return validate_vendors(self.load() if vendors is None else vendors)

    def find_conflicts(self, vendors: Optional[List[VendorDefinition]] = None) -> List[PathConflict]:
        return find_conflicts(self.load() if vendors is None else vendors)

    def get(self, name: str, vendors: Optional[List[VendorDefinition]] = None) -> VendorDefinition:
        for vendor in self.load() if vendors is None else vendors:
            if vendor.name == name:
                return vendor
        raise VendorNotFoundError(f"Vendor '{name}' is not configured", context={"vendor": name})

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def _mutate(
        self,
        name: str,
        change: Callable[[VendorDefinition], Optional[VendorDefinition]],
    ) -> List[VendorDefinition]:
        vendors = self.load()
        index = next((i for i, v in enumerate(vendors) if v.name == name), None)
        if index is None:
            raise VendorNotFoundError(f"Vendor '{name}' is not configured", context={"vendor": name})

        updated = change(vendors[index])
        if updated is None:
            del vendors[index]
        else:
            vendors[index] = updated
        return self.save(vendors)

    def add_vendor(self, vendor: VendorDefinition) -> VendorDefinition:
        """Add a new vendor.

        Raises:
            DuplicateNameError: If the name is already configured
            MappingConflictError: If a destination overlaps any existing mapping
        """
        vendors = self.load()
        if any(v.name == vendor.name for v in vendors):
            raise DuplicateNameError(
                f"Vendor '{vendor.name}' already exists",
                context={"vendor": vendor.name},
            )
        saved = self.save([*vendors, vendor])
        logger.info("Added vendor %s", vendor.name)
        return saved[-1]

    def remove_vendor(self, name: str, *, lock_store: Any = None) -> None:
        """Remove a vendor (and its lock entry when ``lock_store`` is given)."""
        self._mutate(name, lambda _v: None)
        if lock_store is not None:
            lock_store.remove(name)
        logger.info("Removed vendor %s", name)

    def rename_vendor(self, old: str, new: str, *, lock_store: Any = None) -> VendorDefinition:
        """Rename a vendor together with its lock entry.

        The lock is renamed first; if the config write then fails the lock
        rename is reverted so both files keep agreeing on the name.
        """
        validate_name(new)
        vendors = self.load()
        if any(v.name == new for v in vendors):
            raise DuplicateNameError(f"Vendor '{new}' already exists", context={"vendor": new})
        self.get(old, vendors)

        lock_renamed = False
        if lock_store is not None and old in lock_store.load():
            lock_store.rename(old, new)
            lock_renamed = True

        try:
            saved = self.save([dataclasses.replace(v, name=new) if v.name == old else v for v in vendors])
        except Exception:
            if lock_renamed:
                try:
                    lock_store.rename(new, old)
                except LockError:
                    logger.error("Failed to restore lock entry '%s' after config write failure", old)
            raise

        logger.info("Renamed vendor %s -> %s", old, new)
        return next(v for v in saved if v.name == new)

    def update_vendor(
        self,
        name: str,
        *,
        url: Optional[str] = None,
        ref: Optional[str] = None,
        compliance: Optional[ComplianceLevel] = None,
        license: Any = _UNSET,
        group: Any = _UNSET,
    ) -> VendorDefinition:
        """Edit vendor fields; ``license``/``group`` may be set to ``None`` to clear."""

        def change(vendor: VendorDefinition) -> VendorDefinition:
            fields: dict[str, Any] = {}
            if url is not None:
                fields["url"] = url
            if ref is not None:
                fields["ref"] = ref
            if compliance is not None:
                fields["compliance"] = ComplianceLevel(compliance)
            if license is not _UNSET:
                fields["license"] = license or None
            if group is not _UNSET:
                fields["group"] = group or None
            return dataclasses.replace(vendor, **fields)

        saved = self._mutate(name, change)
        return next(v for v in saved if v.name == name)

    def add_mapping(self, name: str, mapping: PathMapping) -> VendorDefinition:
        """Append a mapping to a vendor.

        Raises:
            MappingConflictError: If the destination overlaps any mapping of any vendor
        """
        mapping = normalize_mapping(mapping)
        saved = self._mutate(name, lambda v: dataclasses.replace(v, mappings=(*v.mappings, mapping)))
        return next(v for v in saved if v.name == name)

    def remove_mapping(self, name: str, destination: str) -> VendorDefinition:
        """Remove the mapping targeting ``destination``.

        Raises:
            ConfigError: If no such mapping exists or it is the vendor's last one
        """
        target = normalize_mapping_path(destination, kind="destination")

        def change(vendor: VendorDefinition) -> VendorDefinition:
            remaining = tuple(m for m in vendor.mappings if m.destination != target)
            if len(remaining) == len(vendor.mappings):
                raise ConfigError(
                    f"Vendor '{name}' has no mapping to '{destination}'",
                    context={"vendor": name, "destination": destination},
                )
            if not remaining:
                raise ConfigError(
                    f"Cannot remove the last mapping of vendor '{name}'; remove the vendor instead",
                    context={"vendor": name, "destination": destination},
                )
            return dataclasses.replace(vendor, mappings=remaining)

        saved = self._mutate(name, change)
        return next(v for v in saved if v.name == name)

    def update_mapping(self, name: str, destination: str, mapping: PathMapping) -> VendorDefinition:
        """Replace the mapping targeting ``destination`` with ``mapping`` in place."""
        target = normalize_mapping_path(destination, kind="destination")
        mapping = normalize_mapping(mapping)

        def change(vendor: VendorDefinition) -> VendorDefinition:
            if not any(m.destination == target for m in vendor.mappings):
                raise ConfigError(
                    f"Vendor '{name}' has no mapping to '{destination}'",
                    context={"vendor": name, "destination": destination},
                )
            return dataclasses.replace(
                vendor,
                mappings=tuple(mapping if m.destination == target else m for m in vendor.mappings),
            )

        saved = self._mutate(name, change)
        return next(v for v in saved if v.name == name)


__all__ = ["ConfigStore"]
