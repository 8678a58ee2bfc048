"""Test environment helpers backed by a real git binary."""
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Dict, List

GIT_TIMEOUT = 60


def _git(args: List[str], cwd: Path) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
        timeout=GIT_TIMEOUT,
    )
    return result.stdout.strip()


class TestGitRepo:
    """Isolated upstream repository that vendors are pulled from."""

    __test__ = False  # Tell pytest this is not a test class

    def __init__(self, repo_path: Path):
        """Initialize the repository with an initial commit on ``main``.

        Args:
            repo_path: Directory to create the repository in
        """
        self.repo_path = repo_path
        self.repo_path.mkdir(parents=True, exist_ok=True)
        _git(["init", "-b", "main"], self.repo_path)
        # Hermetic identity; never sign test commits.
        _git(["config", "--local", "user.email", "test@example.com"], self.repo_path)
        _git(["config", "--local", "user.name", "Test User"], self.repo_path)
        _git(["config", "--local", "commit.gpgsign", "false"], self.repo_path)
        _git(["config", "--local", "tag.gpgsign", "false"], self.repo_path)
        self.commit_files({"README.md": "# Test Repository\n"}, "Initial commit")

    @property
    def url(self) -> str:
        return self.repo_path.as_uri()

    def commit_files(self, files: Dict[str, str], message: str) -> str:
        """Write ``files`` (relative path -> text), commit, and return the SHA."""
        for rel, content in files.items():
            target = self.repo_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        _git(["add", "-A"], self.repo_path)
        _git(["commit", "-m", message], self.repo_path)
        return self.head()

    def tag(self, name: str, *, annotated: bool = False) -> None:
        if annotated:
            _git(["tag", "-a", name, "-m", name], self.repo_path)
        else:
            _git(["tag", name], self.repo_path)

    def head(self) -> str:
        return _git(["rev-parse", "HEAD"], self.repo_path)


def init_project_repo(path: Path) -> Path:
    """Make ``path`` a git work tree (for ``pull --commit``)."""
    path.mkdir(parents=True, exist_ok=True)
    _git(["init", "-b", "main"], path)
    _git(["config", "--local", "user.email", "test@example.com"], path)
    _git(["config", "--local", "user.name", "Test User"], path)
    _git(["config", "--local", "commit.gpgsign", "false"], path)
    return path


def git_log_message(path: Path) -> str:
    return _git(["log", "-1", "--format=%B"], path)


__all__ = ["TestGitRepo", "init_project_repo", "git_log_message"]
