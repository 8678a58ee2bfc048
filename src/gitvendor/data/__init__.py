"""
gitvendor data resource helpers.

Provides access to bundled configuration defaults and JSON schemas (stored
as YAML) using importlib.resources.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Get absolute path to a data file or directory.

    Example:
        >>> get_data_path("config", "defaults.yaml")
        PosixPath('/path/to/gitvendor/data/config/defaults.yaml')
    """
    pkg = resources.files("gitvendor.data")
    base = Path(str(pkg / subpackage))
    return base / filename if filename else base


@lru_cache(maxsize=16)
def read_yaml(subpackage: str, filename: str) -> dict[str, Any]:
    """Load a bundled YAML document (cached; callers must not mutate it)."""
    path = get_data_path(subpackage, filename)
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


__all__ = ["get_data_path", "read_yaml"]
