"""gitvendor exceptions.

Every error raised by the core derives from :class:`GitVendorError` so that
the CLI can render a uniform message (or JSON payload) for it.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping


class GitVendorError(Exception):
    """Base exception for gitvendor."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigError(GitVendorError):
    """Raised when vendor configuration is invalid or cannot be read."""


class DuplicateNameError(ConfigError):
    """Raised when adding a vendor whose name is already configured."""


class MappingConflictError(ConfigError):
    """Raised when a destination path overlaps another mapping."""


class InvalidPathError(ConfigError):
    """Raised for absolute, home-relative, or traversing mapping paths."""


class VendorNotFoundError(ConfigError):
    """Raised when a vendor is not found in configuration."""


class GroupNotFoundError(ConfigError):
    """Raised when no configured vendor carries the requested group."""


class LockError(GitVendorError):
    """Raised when lock file operations fail."""


class LockCorruptError(LockError):
    """Raised when the lock file exists but cannot be parsed or validated."""


class GitError(GitVendorError):
    """Base class for failures of the git capability."""

    retryable: bool = False


class NetworkError(GitError):
    """Transient transport failure; callers may retry."""

    retryable = True


class RefNotFoundError(GitError):
    """Raised when a ref or commit does not exist upstream."""


class AuthRequiredError(GitError):
    """Raised when the remote rejects the request for lack of credentials."""


class GitCommandError(GitError):
    """Raised when a git command fails for an unclassified reason."""


class SourcePathNotFoundError(GitVendorError):
    """Raised when a mapping's source path is missing from the fetched tree."""


class CacheError(GitVendorError):
    """Raised when the incremental cache cannot be read or written."""


class SettingsError(GitVendorError):
    """Raised when settings files or environment overrides are invalid."""


class LicenseLookupError(GitVendorError):
    """Raised when a license could not be looked up (as opposed to not found)."""


class PolicyError(ConfigError):
    """Raised when the license policy file is unreadable or contradictory."""


__all__ = [
    "GitVendorError",
    "ConfigError",
    "DuplicateNameError",
    "MappingConflictError",
    "InvalidPathError",
    "VendorNotFoundError",
    "GroupNotFoundError",
    "LockError",
    "LockCorruptError",
    "GitError",
    "NetworkError",
    "RefNotFoundError",
    "AuthRequiredError",
    "GitCommandError",
    "SourcePathNotFoundError",
    "CacheError",
    "SettingsError",
    "LicenseLookupError",
    "PolicyError",
]
