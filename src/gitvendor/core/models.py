"""Vendor data models.

Provides immutable dataclasses for vendor configuration, lock state, and
the ephemeral per-run results.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping

from gitvendor.core.redaction import redact_url_credentials

# Fetched tree contents: repository-relative posix path -> file bytes.
Tree = Dict[str, bytes]


class ComplianceLevel(str, Enum):
    """Per-vendor compliance policy."""

    STRICT = "strict"
    LENIENT = "lenient"
    INFO = "info"


class SyncOutcome(str, Enum):
    """Outcome of one vendor's unit of work."""

    SYNCED = "synced"
    SKIPPED = "skipped"
    FAILED = "failed"
    UNCHANGED = "unchanged"
    MODIFIED = "modified"


class Verdict(str, Enum):
    """Compliance verdict reported by ``status``."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class PathMapping:
    """Copies ``source`` from the upstream tree to ``destination`` locally.

    Attributes:
        source: Path inside the upstream repository ('.' for the whole tree)
        destination: Path inside the local project
        exclude: Glob patterns, relative to the source, of files not to copy
    """

    source: str
    destination: str
    exclude: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PathMapping:
        return cls(
            source=str(data["from"]),
            destination=str(data["to"]),
            exclude=tuple(str(p) for p in data.get("exclude") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"from": self.source, "to": self.destination}
        if self.exclude:
            result["exclude"] = list(self.exclude)
        return result


@dataclass(frozen=True, slots=True)
class VendorDefinition:
    """Represents one configured vendor.

    Attributes:
        name: Unique vendor identifier
        url: Git repository URL
        ref: Tracked ref (branch, tag, or commit)
        mappings: Ordered path mappings
        compliance: Compliance level (strict, lenient, info)
        license: Declared SPDX license identifier, if any
        group: Optional group tag used to filter batch operations
    """

    name: str
    url: str
    ref: str
    mappings: tuple[PathMapping, ...] = ()
    compliance: ComplianceLevel = ComplianceLevel.LENIENT
    license: str | None = None
    group: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VendorDefinition:
        """Create VendorDefinition from a config record."""
        return cls(
            name=str(data["name"]),
            url=str(data["url"]),
            ref=str(data["ref"]),
            mappings=tuple(PathMapping.from_dict(m) for m in data.get("mapping") or []),
            compliance=ComplianceLevel(data.get("compliance") or ComplianceLevel.LENIENT.value),
            license=data.get("license") or None,
            group=data.get("group") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a config record."""
        result: dict[str, Any] = {
            "name": self.name,
            "url": self.url,
            "ref": self.ref,
            "compliance": self.compliance.value,
        }
        if self.license:
            result["license"] = self.license
        if self.group:
            result["group"] = self.group
        result["mapping"] = [m.to_dict() for m in self.mappings]
        return result


@dataclass(frozen=True, slots=True)
class LockEntry:
    """Entry in the vendor lock file.

    Attributes:
        name: Vendor name
        url: Repository URL (credentials redacted)
        ref: Ref the commit was resolved from
        commit: Resolved commit SHA
        checksums: Destination path -> content checksum
        locked_at: UTC timestamp of the sync that produced the entry
        mappings: The mappings the checksums were produced from (empty in
            entries written before mappings were recorded)
    """

    name: str
    url: str
    ref: str
    commit: str
    checksums: Mapping[str, str] = field(default_factory=dict)
    locked_at: str = ""
    mappings: tuple[PathMapping, ...] = ()

    def __post_init__(self) -> None:
        # Lock entries never retain credential-bearing URLs in memory or on disk.
        object.__setattr__(self, "url", redact_url_credentials(self.url))
        object.__setattr__(self, "checksums", dict(self.checksums))
        object.__setattr__(self, "mappings", tuple(self.mappings))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "url": self.url,
            "ref": self.ref,
            "commit": self.commit,
            "locked_at": self.locked_at,
            "checksums": dict(sorted(self.checksums.items())),
        }
        if self.mappings:
            result["mapping"] = [m.to_dict() for m in self.mappings]
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LockEntry:
        required_keys = {"name", "url", "ref", "commit"}
        missing = required_keys - set(data.keys())
        if missing:
            raise ValueError(f"Missing required keys: {sorted(missing)}")
        return cls(
            name=str(data["name"]),
            url=str(data["url"]),
            ref=str(data["ref"]),
            commit=str(data["commit"]),
            checksums={str(k): str(v) for k, v in (data.get("checksums") or {}).items()},
            locked_at=str(data.get("locked_at") or ""),
            mappings=tuple(PathMapping.from_dict(m) for m in data.get("mapping") or ()),
        )

    def renamed(self, name: str) -> LockEntry:
        return LockEntry(
            name=name,
            url=self.url,
            ref=self.ref,
            commit=self.commit,
            checksums=self.checksums,
            locked_at=self.locked_at,
            mappings=self.mappings,
        )


@dataclass(frozen=True, slots=True)
class FileChange:
    """A single planned change to the destination tree."""

    path: str
    action: str  # 'added', 'modified' or 'removed'

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "action": self.action}


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Result of one vendor's sync unit.

    Attributes:
        vendor_name: Vendor name
        outcome: What happened to the vendor
        commit: Target commit SHA (when resolved)
        previous_commit: Commit recorded in the lock before the run
        files_written: Files written (or that would be written in dry-run)
        changes: Per-file added/modified/removed changes
        pruned: Destinations removed because their source disappeared
        warnings: Non-fatal messages
        error: Error message if failed
        error_code: Exception class name if failed
    """

    vendor_name: str
    outcome: SyncOutcome
    commit: str | None = None
    previous_commit: str | None = None
    files_written: int = 0
    changes: tuple[FileChange, ...] = ()
    pruned: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    error: str | None = None
    error_code: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome is not SyncOutcome.FAILED

    @property
    def changed(self) -> bool:
        return self.outcome is SyncOutcome.SYNCED and (
            bool(self.changes) or self.commit != self.previous_commit
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "vendor": self.vendor_name,
            "outcome": self.outcome.value,
            "commit": self.commit,
            "previous_commit": self.previous_commit,
            "files_written": self.files_written,
            "changes": [c.to_dict() for c in self.changes],
            "pruned": list(self.pruned),
            "warnings": list(self.warnings),
            "error": self.error,
            "error_code": self.error_code,
        }


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """Per-vendor status line.

    ``local_drift`` and ``remote_drift`` are ``None`` when the respective check
    was skipped or could not be performed.
    """

    vendor_name: str
    ref: str
    compliance: ComplianceLevel
    verdict: Verdict
    locked_commit: str | None = None
    remote_commit: str | None = None
    local_drift: bool | None = None
    remote_drift: bool | None = None
    drifted_paths: tuple[str, ...] = ()
    license: str | None = None
    policy_decision: str | None = None
    messages: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "vendor": self.vendor_name,
            "ref": self.ref,
            "compliance": self.compliance.value,
            "verdict": self.verdict.value,
            "locked_commit": self.locked_commit,
            "remote_commit": self.remote_commit,
            "local_drift": self.local_drift,
            "remote_drift": self.remote_drift,
            "drifted_paths": list(self.drifted_paths),
            "license": self.license,
            "policy_decision": self.policy_decision,
            "messages": list(self.messages),
        }


@dataclass(frozen=True, slots=True)
class PathConflict:
    """Two mappings whose destinations overlap."""

    vendor_a: str
    destination_a: str
    vendor_b: str
    destination_b: str

    def describe(self) -> str:
        return (
            f"'{self.destination_a}' ({self.vendor_a}) overlaps "
            f"'{self.destination_b}' ({self.vendor_b})"
        )


@dataclass(frozen=True, slots=True)
class GCResult:
    """Result of cache garbage collection.

    Attributes:
        removed_trees: Commit hashes whose cached trees were evicted
        removed_mirrors: Mirror repository paths removed
        bytes_freed: Bytes freed by cleanup
    """

    removed_trees: tuple[str, ...] = ()
    removed_mirrors: tuple[str, ...] = ()
    bytes_freed: int = 0


__all__ = [
    "Tree",
    "ComplianceLevel",
    "SyncOutcome",
    "Verdict",
    "PathMapping",
    "VendorDefinition",
    "LockEntry",
    "FileChange",
    "SyncResult",
    "StatusEntry",
    "PathConflict",
    "GCResult",
]
