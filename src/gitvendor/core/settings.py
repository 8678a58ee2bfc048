"""gitvendor settings (YAML layers + environment overrides).

Sources, lowest to highest priority:
1. Bundled defaults: ``gitvendor/data/config/defaults.yaml``
2. Project settings: ``.git-vendor/settings.yaml``
3. Environment variables: ``GIT_VENDOR_<key>`` with ``__`` separating nested
   keys, values parsed as YAML scalars (``GIT_VENDOR_retry__max_attempts=5``)

The merged document is validated against ``settings.schema.yaml``.
"""
from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from gitvendor.core.exceptions import SettingsError
from gitvendor.core.paths import settings_path
from gitvendor.core.schemas import SchemaValidationError, validate_document
from gitvendor.core.utils.io import read_yaml
from gitvendor.core.utils.merge import deep_merge, set_nested
from gitvendor.core.utils.resilience import RetryPolicy
from gitvendor.data import read_yaml as read_bundled_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "GIT_VENDOR_"


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved runtime settings."""

    workers: int
    retry: RetryPolicy
    cache_dir: Path
    git_binary: str
    git_timeout: float
    log_level: str
    log_file: Path | None


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [p for p in key[len(ENV_PREFIX):].split("__") if p]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw) if raw != "" else None
        except yaml.YAMLError:
            value = raw
        set_nested(overrides, path, value)
    return overrides


def load_settings_document(
    repo_root: Path,
    environ: Mapping[str, str] | None = None,
) -> Dict[str, Any]:
    """Return the merged, validated settings document."""
    merged: Dict[str, Any] = copy.deepcopy(read_bundled_yaml("config", "defaults.yaml"))

    project_file = settings_path(repo_root)
    try:
        project = read_yaml(project_file, default={}, raise_on_error=True)
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Cannot read {project_file}: {e}") from e
    if not isinstance(project, dict):
        raise SettingsError(f"{project_file} must contain a mapping")
    merged = deep_merge(merged, project)

    env = os.environ if environ is None else environ
    merged = deep_merge(merged, _env_overrides(env))

    try:
        validate_document(merged, "settings.schema.yaml")
    except SchemaValidationError as e:
        raise SettingsError(f"Invalid settings: {e}", context={"errors": e.errors}) from e
    return merged


def load_settings(repo_root: Path, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings for the project at ``repo_root``."""
    doc = load_settings_document(repo_root, environ)

    cache_dir = Path(str(doc["cache"]["dir"])).expanduser()
    if not cache_dir.is_absolute():
        cache_dir = Path(repo_root) / cache_dir

    log_file_raw = doc["logging"].get("file")
    log_file = None
    if log_file_raw:
        log_file = Path(str(log_file_raw)).expanduser()
        if not log_file.is_absolute():
            log_file = Path(repo_root) / log_file

    settings = Settings(
        workers=int(doc["workers"]),
        retry=RetryPolicy.from_settings(doc["retry"]),
        cache_dir=cache_dir,
        git_binary=str(doc["git"]["binary"]),
        git_timeout=float(doc["git"]["timeout_seconds"]),
        log_level=str(doc["logging"]["level"]),
        log_file=log_file,
    )
    logger.debug("Loaded settings: %s", settings)
    return settings


__all__ = ["Settings", "ENV_PREFIX", "load_settings", "load_settings_document"]
