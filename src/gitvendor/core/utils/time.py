"""Timezone-aware time helpers."""
from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_timestamp() -> str:
    """Return an ISO 8601 UTC timestamp with second precision and a ``Z`` suffix."""
    return utc_now().replace(microsecond=0).isoformat().replace("+00:00", "Z")


__all__ = ["utc_now", "utc_timestamp"]
