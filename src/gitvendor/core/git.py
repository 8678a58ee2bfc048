"""Git operations.

The sync engine talks to git only through :class:`GitOperations`. The
system backend drives the ``git`` binary against one bare mirror repository
per vendor URL, kept under the cache directory:

- ``resolve_ref`` fetches the mirror and resolves the ref locally
- ``fetch_tree`` exports a commit with ``git archive``
- ``list_remote_commit`` asks the remote directly with ``git ls-remote``
- ``diff`` runs ``git diff`` inside the mirror

Failures are classified from git's stderr into the :class:`GitError`
taxonomy, and every surfaced message is passed through credential redaction.
"""
from __future__ import annotations

import io
import logging
import os
import re
import subprocess
import tarfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

from gitvendor.core.cache import IncrementalCache
from gitvendor.core.exceptions import (
    AuthRequiredError,
    GitCommandError,
    GitError,
    NetworkError,
    RefNotFoundError,
)
from gitvendor.core.models import Tree
from gitvendor.core.redaction import redact_git_args, redact_text_credentials, redact_url_credentials

logger = logging.getLogger(__name__)

_FULL_SHA_RE = re.compile(r"^[0-9a-f]{40}([0-9a-f]{24})?$")

_AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "permission denied (publickey",
    "terminal prompts disabled",
    "repository not found",
    "the requested url returned error: 401",
    "the requested url returned error: 403",
)
_NETWORK_MARKERS = (
    "could not resolve host",
    "connection timed out",
    "connection refused",
    "connection reset",
    "operation timed out",
    "network is unreachable",
    "early eof",
    "the remote end hung up",
    "unable to access",
    "failed to connect",
    "the requested url returned error: 5",
)
_REF_MARKERS = (
    "unknown revision",
    "not a valid object name",
    "needed a single revision",
    "couldn't find remote ref",
    "not a tree object",
    "bad revision",
    "not our ref",
    "invalid object name",
)


@runtime_checkable
class GitOperations(Protocol):
    """Capability the sync and status engines need from git."""

    def resolve_ref(self, url: str, ref: str) -> str:
        """Resolve ``ref`` (branch, tag, or commit) to a full commit SHA."""
        ...

    def fetch_tree(self, url: str, commit: str) -> Tree:
        """Return every file of ``commit`` keyed by repository-relative path."""
        ...

    def list_remote_commit(self, url: str, ref: str) -> str:
        """Cheap network-only lookup of the commit ``ref`` currently points to."""
        ...

    def diff(self, url: str, commit_a: str, commit_b: str, path: str) -> str:
        """Textual diff of ``path`` between two commits."""
        ...


def classify_git_failure(message: str) -> type[GitError]:
    """Map git's stderr to the most specific :class:`GitError` subclass."""
    lowered = message.lower()
    if any(marker in lowered for marker in _AUTH_MARKERS):
        return AuthRequiredError
    if any(marker in lowered for marker in _NETWORK_MARKERS):
        return NetworkError
    if any(marker in lowered for marker in _REF_MARKERS):
        return RefNotFoundError
    return GitCommandError


def run_git(
    args: List[str],
    *,
    cwd: Optional[Path] = None,
    binary: str = "git",
    timeout: Optional[float] = None,
    text: bool = True,
) -> subprocess.CompletedProcess:
    """Run a git command, raising a classified and redacted :class:`GitError`."""
    env = os.environ.copy()
    # Never block a worker on an interactive credential prompt.
    env["GIT_TERMINAL_PROMPT"] = "0"
    safe_cmd = "git " + " ".join(redact_git_args(args))
    logger.debug("Running %s", safe_cmd)
    try:
        return subprocess.run(
            [binary] + args,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=text,
            check=True,
            env=env,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise NetworkError(
            f"Git command timed out after {timeout}s: {safe_cmd}",
            context={"command": safe_cmd},
        ) from e
    except FileNotFoundError as e:
        raise GitCommandError(f"Git executable not found: {binary}", context={"binary": binary}) from e
    except subprocess.CalledProcessError as e:
        raw = e.stderr or e.stdout or str(e)
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        safe_output = redact_text_credentials(raw).strip()
        error_cls = classify_git_failure(safe_output)
        raise error_cls(
            f"Git command failed: {safe_cmd}\n{safe_output}",
            context={"command": safe_cmd, "returncode": e.returncode},
        ) from e


def parse_ls_remote(output: str, ref: str) -> Optional[str]:
    """Pick the commit for ``ref`` from ``git ls-remote`` output.

    Annotated tags are peeled (``refs/tags/<ref>^{}``) before the tag object
    itself; tags win over branches of the same name.
    """
    refs: Dict[str, str] = {}
    for line in output.splitlines():
        parts = line.strip().split("\t", 1)
        if len(parts) == 2:
            refs[parts[1].strip()] = parts[0].strip()

    for candidate in (
        f"refs/tags/{ref}^{{}}",
        f"refs/tags/{ref}",
        f"refs/heads/{ref}",
        f"{ref}^{{}}",
        ref,
    ):
        if candidate in refs:
            return refs[candidate]
    return None


def tree_from_tar(data: bytes) -> Tree:
    """Read regular files out of a ``git archive`` tarball."""
    tree: Tree = {}
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:") as archive:
        for member in archive.getmembers():
            if not member.isfile():
                if member.issym():
                    logger.debug("Skipping symlink %s in archive", member.name)
                continue
            handle = archive.extractfile(member)
            if handle is None:
                continue
            tree[member.name] = handle.read()
    return tree


class SystemGitOperations:
    """:class:`GitOperations` backed by the ``git`` binary and bare mirrors."""

    def __init__(self, cache: IncrementalCache, *, binary: str = "git", timeout: float = 300.0) -> None:
        """Initialize the backend.

        Args:
            cache: Cache whose mirrors directory holds one bare mirror per URL
            binary: git executable
            timeout: Per-command timeout in seconds
        """
        self.cache = cache
        self.binary = binary
        self.timeout = timeout
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._fetched: set[str] = set()

    def _git(self, args: List[str], cwd: Optional[Path] = None, *, text: bool = True) -> subprocess.CompletedProcess:
        return run_git(args, cwd=cwd, binary=self.binary, timeout=self.timeout, text=text)

    def _url_lock(self, url: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(url, threading.Lock())

    def mirror_path(self, url: str) -> Path:
        return self.cache.mirror_path(url)

    def _has_commit(self, mirror: Path, commit: str) -> bool:
        try:
            self._git(["cat-file", "-e", f"{commit}^{{commit}}"], cwd=mirror)
            return True
        except GitError:
            return False

    def _ensure_mirror(self, url: str, *, refresh: bool) -> Path:
        """Clone the mirror on first use; fetch it at most once per instance when ``refresh``."""
        mirror = self.mirror_path(url)
        with self._url_lock(url):
            if not (mirror / "HEAD").exists():
                mirror.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Cloning mirror for %s", redact_url_credentials(url))
                self._git(["clone", "--bare", "--mirror", "--", url, str(mirror)], cwd=mirror.parent)
                self._fetched.add(url)
            elif refresh and url not in self._fetched:
                logger.debug("Fetching mirror for %s", redact_url_credentials(url))
                self._git(
                    ["fetch", "--prune", "--", url, "+refs/heads/*:refs/heads/*", "+refs/tags/*:refs/tags/*"],
                    cwd=mirror,
                )
                self._fetched.add(url)
        return mirror

    def resolve_ref(self, url: str, ref: str) -> str:
        mirror = self._ensure_mirror(url, refresh=True)
        try:
            result = self._git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], cwd=mirror)
        except GitCommandError as e:
            raise RefNotFoundError(
                f"Ref '{ref}' not found in {redact_url_credentials(url)}",
                context={"url": redact_url_credentials(url), "ref": ref},
            ) from e
        commit = result.stdout.strip()
        if not commit:
            raise RefNotFoundError(
                f"Ref '{ref}' not found in {redact_url_credentials(url)}",
                context={"url": redact_url_credentials(url), "ref": ref},
            )
        return commit

    def fetch_tree(self, url: str, commit: str) -> Tree:
        mirror = self._ensure_mirror(url, refresh=False)
        if not self._has_commit(mirror, commit):
            with self._url_lock(url):
                if not self._has_commit(mirror, commit):
                    self._git(["fetch", "--", url, commit], cwd=mirror)
        result = self._git(["archive", "--format=tar", commit], cwd=mirror, text=False)
        tree = tree_from_tar(result.stdout)
        logger.debug("Fetched %d files for %s", len(tree), commit[:12])
        return tree

    def list_remote_commit(self, url: str, ref: str) -> str:
        if _FULL_SHA_RE.match(ref):
            return ref
        result = self._git(["ls-remote", "--", url, ref, f"{ref}^{{}}"])
        commit = parse_ls_remote(result.stdout, ref)
        if commit is None:
            raise RefNotFoundError(
                f"Ref '{ref}' not found on {redact_url_credentials(url)}",
                context={"url": redact_url_credentials(url), "ref": ref},
            )
        return commit

    def diff(self, url: str, commit_a: str, commit_b: str, path: str) -> str:
        mirror = self._ensure_mirror(url, refresh=False)
        for commit in (commit_a, commit_b):
            if not self._has_commit(mirror, commit):
                self._git(["fetch", "--", url, commit], cwd=mirror)
        args = ["diff", commit_a, commit_b]
        if path and path != ".":
            args += ["--", path]
        return self._git(args, cwd=mirror).stdout


__all__ = [
    "GitOperations",
    "SystemGitOperations",
    "classify_git_failure",
    "run_git",
    "parse_ls_remote",
    "tree_from_tar",
]
