"""Tests for layered settings loading."""
from __future__ import annotations

from pathlib import Path

import pytest

from gitvendor.core.exceptions import SettingsError
from gitvendor.core.paths import settings_path
from gitvendor.core.settings import load_settings


class TestLoadSettings:
    """Bundled defaults, project file, then environment."""

    def test_bundled_defaults(self, project: Path) -> None:
        settings = load_settings(project, environ={})

        assert settings.workers == 4
        assert settings.retry.max_attempts == 3
        assert settings.cache_dir == project / ".git-vendor" / ".cache"
        assert settings.git_binary == "git"
        assert settings.log_level == "WARNING"
        assert settings.log_file is None

    def test_project_file_overrides_defaults(self, project: Path) -> None:
        settings_path(project).write_text(
            "workers: 8\nretry:\n  max_attempts: 5\nlogging:\n  file: logs/git-vendor.log\n",
            encoding="utf-8",
        )

        settings = load_settings(project, environ={})

        assert settings.workers == 8
        assert settings.retry.max_attempts == 5
        assert settings.retry.backoff_factor == 2.0
        assert settings.log_file == project / "logs" / "git-vendor.log"

    def test_environment_wins_over_project_file(self, project: Path) -> None:
        settings_path(project).write_text("workers: 8\n", encoding="utf-8")

        settings = load_settings(
            project,
            environ={"GIT_VENDOR_workers": "2", "GIT_VENDOR_retry__max_attempts": "7", "OTHER": "x"},
        )

        assert settings.workers == 2
        assert settings.retry.max_attempts == 7

    def test_absolute_cache_dir_is_kept(self, project: Path, tmp_path: Path) -> None:
        settings = load_settings(project, environ={"GIT_VENDOR_cache__dir": str(tmp_path / "shared")})

        assert settings.cache_dir == tmp_path / "shared"

    @pytest.mark.parametrize(
        "environ",
        [
            {"GIT_VENDOR_workers": "0"},
            {"GIT_VENDOR_workers": "many"},
            {"GIT_VENDOR_logging__level": "LOUD"},
            {"GIT_VENDOR_unknown": "1"},
        ],
    )
    def test_invalid_values_are_rejected(self, project: Path, environ: dict) -> None:
        with pytest.raises(SettingsError):
            load_settings(project, environ=environ)

    def test_unparseable_project_file(self, project: Path) -> None:
        settings_path(project).write_text("workers: [\n", encoding="utf-8")

        with pytest.raises(SettingsError):
            load_settings(project, environ={})
