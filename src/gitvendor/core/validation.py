"""Safety checks for vendor definitions.

Vendor names end up in file names and log lines, URLs and refs are handed to
``git`` as arguments, and mapping destinations are written to disk. All three
are validated here before anything is persisted or executed.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List

from gitvendor.core.exceptions import (
    ConfigError,
    DuplicateNameError,
    InvalidPathError,
    MappingConflictError,
)
from gitvendor.core.models import PathConflict, PathMapping, VendorDefinition
from gitvendor.core.paths import is_reserved_destination, normalize_mapping_path, paths_overlap
from gitvendor.core.redaction import has_embedded_credentials

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_SCP_RE = re.compile(r"(?P<user>[^@\s/]+)@(?P<host>[^:\s/]+):")


def validate_name(name: str) -> None:
    if not name or not _NAME_RE.match(name) or ".." in name:
        raise ConfigError(
            f"Invalid vendor name '{name}' (letters, digits, '.', '_' and '-' only)",
            context={"vendor": name},
        )


def is_local_url(url: str) -> bool:
    """True for ``file://`` URLs and plain filesystem paths."""
    if url.startswith("file://"):
        return True
    if "://" in url:
        return False
    if _SCP_RE.match(url):
        return False
    return url.startswith(("/", "./", "../", "~")) or Path(url).exists()


def validate_url(name: str, url: str, ref: str, *, allow_local: bool = True) -> None:
    """Reject URLs and refs that are unsafe to pass to git.

    Raises:
        ConfigError: Leading '-', whitespace, embedded credentials, or a local
            URL when ``allow_local`` is False
    """
    if any(x.startswith("-") for x in (url, ref)):
        raise ConfigError(
            f"Vendor '{name}' has unsafe url/ref (must not start with '-').",
            context={"vendor": name},
        )
    if any(any(ch.isspace() for ch in x) for x in (url, ref)):
        raise ConfigError(
            f"Vendor '{name}' has unsafe url/ref (must not contain whitespace).",
            context={"vendor": name},
        )

    # Use SSH remotes or a credential manager instead.
    if has_embedded_credentials(url):
        raise ConfigError(
            f"Vendor '{name}' has unsafe url (must not include credentials).",
            context={"vendor": name},
        )

    if not allow_local and is_local_url(url):
        raise ConfigError(
            f"Vendor '{name}' uses a local repository URL ({url}); pass --local to allow it.",
            context={"vendor": name, "url": url},
        )


def normalize_exclude(patterns: Iterable[str]) -> tuple[str, ...]:
    """Clean exclude globs: posix separators, no empty or absolute patterns."""
    cleaned: List[str] = []
    for raw in patterns:
        pattern = str(raw).strip().replace("\\", "/")
        while pattern.startswith("./"):
            pattern = pattern[2:]
        if not pattern or pattern.startswith("/"):
            raise InvalidPathError(
                f"Invalid exclude pattern '{raw}' (must be a non-empty relative glob)",
                context={"pattern": str(raw)},
            )
        if pattern not in cleaned:
            cleaned.append(pattern)
    return tuple(cleaned)


def normalize_mapping(mapping: PathMapping) -> PathMapping:
    """Return ``mapping`` with normalized paths, rejecting unsafe ones."""
    source = normalize_mapping_path(mapping.source, kind="source")
    destination = normalize_mapping_path(mapping.destination, kind="destination")
    if is_reserved_destination(destination):
        raise InvalidPathError(
            f"Destination '{mapping.destination}' points into reserved metadata",
            context={"path": mapping.destination},
        )
    return PathMapping(source=source, destination=destination, exclude=normalize_exclude(mapping.exclude))


def find_conflicts(vendors: Iterable[VendorDefinition]) -> List[PathConflict]:
    """Every pair of overlapping destinations, across and within vendors."""
    flat = [(v.name, m.destination) for v in vendors for m in v.mappings]
    conflicts: List[PathConflict] = []
    for i, (name_a, dest_a) in enumerate(flat):
        for name_b, dest_b in flat[i + 1:]:
            if paths_overlap(dest_a, dest_b):
                conflicts.append(PathConflict(name_a, dest_a, name_b, dest_b))
    return conflicts


def validate_vendor(vendor: VendorDefinition) -> VendorDefinition:
    """Validate a single definition and return it with normalized mappings."""
    validate_name(vendor.name)
    validate_url(vendor.name, vendor.url, vendor.ref)
    if not vendor.mappings:
        raise ConfigError(
            f"Vendor '{vendor.name}' has no path mappings",
            context={"vendor": vendor.name},
        )
    mappings = tuple(normalize_mapping(m) for m in vendor.mappings)
    return VendorDefinition(
        name=vendor.name,
        url=vendor.url,
        ref=vendor.ref,
        mappings=mappings,
        compliance=vendor.compliance,
        license=vendor.license,
        group=vendor.group,
    )


def validate_vendors(vendors: Iterable[VendorDefinition]) -> List[VendorDefinition]:
    """Validate a whole definition set.

    Raises:
        ConfigError: On the first unsafe value or duplicate name
        MappingConflictError: When any two destinations overlap
    """
    checked: List[VendorDefinition] = []
    seen: set[str] = set()
    for vendor in vendors:
        if vendor.name in seen:
            raise DuplicateNameError(
                f"Vendor '{vendor.name}' is defined more than once",
                context={"vendor": vendor.name},
            )
        seen.add(vendor.name)
        checked.append(validate_vendor(vendor))

    conflicts = find_conflicts(checked)
    if conflicts:
        first = conflicts[0]
        raise MappingConflictError(
            f"Mapping conflict: {first.describe()}",
            context={"conflicts": [c.describe() for c in conflicts]},
        )
    return checked


__all__ = [
    "validate_name",
    "is_local_url",
    "validate_url",
    "normalize_exclude",
    "normalize_mapping",
    "find_conflicts",
    "validate_vendor",
    "validate_vendors",
]
