"""Redaction helpers for vendor URLs and git error output.

Vendor URLs may carry credentials (``https://token@host/repo.git``). These
helpers keep such secrets out of the lock file, log records, and any error
message surfaced from a failed git invocation.
"""
from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

_SCHEME_CRED_RE = re.compile(r"([a-zA-Z][a-zA-Z0-9+.-]*://)([^\s/@]+(:[^\s/@]*)?@)")
_SCP_STYLE_RE = re.compile(r"(?<![\w/])(?!git@)([^\s@/:<>]+)@([^\s:/]+):")
_SCP_URL_RE = re.compile(r"(?P<user>[^@\s/]+)@(?P<host>[^:\s/]+):(?P<rest>.+)$")


def redact_url_credentials(url: str) -> str:
    """Return ``url`` with any embedded credentials removed."""
    raw = str(url)
    if "://" in raw:
        parts = urlsplit(raw)
        if parts.username is None and parts.password is None:
            return raw
        host = parts.hostname or ""
        port = f":{parts.port}" if parts.port else ""
        return urlunsplit((parts.scheme, f"{host}{port}", parts.path, parts.query, parts.fragment))

    # SSH "scp style": user@host:path; the conventional "git" user is not a secret.
    m = _SCP_URL_RE.match(raw)
    if m and m.group("user") != "git":
        return f"<redacted>@{m.group('host')}:{m.group('rest')}"

    return raw


def redact_text_credentials(text: str) -> str:
    """Redact credential-bearing URL fragments from arbitrary text."""
    s = str(text)
    s = _SCHEME_CRED_RE.sub(r"\1<redacted>@", s)
    s = _SCP_STYLE_RE.sub(r"<redacted>@\2:", s)
    return s


def redact_git_args(args: list[str]) -> list[str]:
    """Redact credentials from git argv for safe logging."""
    return [redact_url_credentials(a) for a in args]


def has_embedded_credentials(url: str) -> bool:
    """Whether ``url`` carries a user or password other than the ssh ``git`` user."""
    raw = str(url)
    if "://" in raw:
        parts = urlsplit(raw)
        if parts.password is not None:
            return True
        return parts.username is not None and not (parts.scheme == "ssh" and parts.username == "git")
    m = _SCP_URL_RE.match(raw)
    return bool(m and m.group("user") != "git")


__all__ = [
    "redact_url_credentials",
    "redact_text_credentials",
    "redact_git_args",
    "has_embedded_credentials",
]
