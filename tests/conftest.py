import os
import shutil
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'gitvendor' and tests/ importable as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    """Keep developer GIT_VENDOR_* variables and logging handlers out of tests."""
    from gitvendor.core.stdlib_logging import reset_stdlib_logging_for_tests

    for key in list(os.environ):
        if key.startswith("GIT_VENDOR_"):
            monkeypatch.delenv(key, raising=False)
    reset_stdlib_logging_for_tests()
    yield
    reset_stdlib_logging_for_tests()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Empty project root with a .git-vendor directory."""
    root = tmp_path / "project"
    (root / ".git-vendor").mkdir(parents=True)
    return root


@pytest.fixture
def fake_git():
    """In-memory git backend that records every call."""
    from helpers.fake_git import FakeGitOperations

    return FakeGitOperations()


@pytest.fixture
def git_repo(tmp_path: Path):
    """Real upstream git repository (skipped when git is unavailable)."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    from helpers.env import TestGitRepo

    return TestGitRepo(tmp_path / "upstream")
