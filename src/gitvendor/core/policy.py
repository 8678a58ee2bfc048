"""License policy.

A policy sorts SPDX identifiers into ``allow``, ``deny`` and ``warn`` lists
and names the decision for any license on none of them (``unknown``)::

    license_policy:
      allow: [MIT, Apache-2.0]
      deny: [GPL-3.0]
      warn: [LGPL-2.1]
      unknown: warn

The project policy lives in ``.git-vendor/policy.yml``; without one the
bundled ``data/config/license_policy.yaml`` applies. Identifiers compare
case-insensitively and a license may appear in at most one list.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from gitvendor.core.exceptions import PolicyError
from gitvendor.core.paths import policy_path
from gitvendor.core.schemas import SchemaValidationError, validate_document
from gitvendor.core.utils.io import read_yaml
from gitvendor.data import read_yaml as read_bundled_yaml

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "default"


class PolicyDecision(str, Enum):
    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"


@dataclass(frozen=True, slots=True)
class LicensePolicy:
    """Allow/deny/warn lists plus the decision for unlisted licenses.

    Attributes:
        allow: Licenses explicitly permitted
        deny: Licenses that fail compliance
        warn: Licenses that downgrade compliance to a warning
        unknown: Decision for a license on none of the lists
        source: Policy file path, or ``"default"`` for the bundled policy
    """

    allow: Tuple[str, ...] = ()
    deny: Tuple[str, ...] = ()
    warn: Tuple[str, ...] = ()
    unknown: PolicyDecision = PolicyDecision.WARN
    source: str = DEFAULT_SOURCE

    def decide(self, license: str) -> PolicyDecision:
        """Decide on ``license``: deny, then allow, then warn, then unknown."""
        key = license.upper()
        if key in {d.upper() for d in self.deny}:
            return PolicyDecision.DENY
        if key in {a.upper() for a in self.allow}:
            return PolicyDecision.ALLOW
        if key in {w.upper() for w in self.warn}:
            return PolicyDecision.WARN
        return self.unknown

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], source: str = DEFAULT_SOURCE) -> LicensePolicy:
        rules = data.get("license_policy") or {}
        return cls(
            allow=tuple(str(x) for x in rules.get("allow") or ()),
            deny=tuple(str(x) for x in rules.get("deny") or ()),
            warn=tuple(str(x) for x in rules.get("warn") or ()),
            unknown=PolicyDecision(rules.get("unknown") or PolicyDecision.WARN.value),
            source=source,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "license_policy": {
                "allow": list(self.allow),
                "deny": list(self.deny),
                "warn": list(self.warn),
                "unknown": self.unknown.value,
            }
        }


def _check_overlaps(policy: LicensePolicy, origin: str) -> None:
    seen: Dict[str, str] = {}
    for list_name, licenses in (("allow", policy.allow), ("deny", policy.deny), ("warn", policy.warn)):
        for license in licenses:
            key = license.upper()
            previous = seen.get(key)
            if previous is not None and previous != list_name:
                raise PolicyError(
                    f"Invalid license policy {origin}: '{license}' appears in both {previous} and {list_name} lists",
                    context={"path": origin, "license": license},
                )
            seen[key] = list_name


def default_policy() -> LicensePolicy:
    return LicensePolicy.from_dict(read_bundled_yaml("config", "license_policy.yaml"))


def load_license_policy(repo_root: Path, path: Optional[Path] = None) -> LicensePolicy:
    """Load the project policy, falling back to the bundled default.

    Raises:
        PolicyError: If the policy file exists but is unreadable, does not
            match its schema, or lists a license twice
    """
    path = Path(path) if path is not None else policy_path(repo_root)
    if not path.exists():
        return default_policy()

    try:
        data = read_yaml(path, default={}, raise_on_error=True)
    except (OSError, yaml.YAMLError) as e:
        raise PolicyError(f"Cannot read license policy {path}: {e}", context={"path": str(path)}) from e

    try:
        validate_document(data, "policy.schema.yaml")
    except SchemaValidationError as e:
        raise PolicyError(
            f"Invalid license policy {path}: {e}",
            context={"path": str(path), "errors": e.errors},
        ) from e

    policy = LicensePolicy.from_dict(data, source=str(path))
    _check_overlaps(policy, str(path))
    logger.debug("Loaded license policy from %s", path)
    return policy


__all__ = [
    "PolicyDecision",
    "LicensePolicy",
    "default_policy",
    "load_license_policy",
]
