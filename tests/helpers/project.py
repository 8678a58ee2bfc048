"""Project fixtures: vendor.yml / vendor.lock writers and manager factory."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from gitvendor.core.paths import config_path, lock_path


def vendor_record(
    name: str,
    url: str,
    ref: str = "main",
    mapping: Iterable[tuple[str, str]] = (("src", "vendor/{name}"),),
    **extra: Any,
) -> Dict[str, Any]:
    """Build one vendor.yml record; ``{name}`` in destinations is substituted."""
    record: Dict[str, Any] = {"name": name, "url": url, "ref": ref}
    record.update(extra)
    record["mapping"] = [{"from": src, "to": dest.format(name=name)} for src, dest in mapping]
    return record


def write_config(repo_root: Path, vendors: List[Dict[str, Any]]) -> Path:
    path = config_path(repo_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump({"vendors": vendors}, sort_keys=False), encoding="utf-8")
    return path


def read_lock(repo_root: Path) -> Dict[str, Dict[str, Any]]:
    """Raw lock records keyed by vendor name ({} when the lock is missing)."""
    path = lock_path(repo_root)
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return {item["name"]: item for item in data.get("vendors") or []}


def snapshot_tree(root: Path) -> Dict[str, bytes]:
    """Every file below ``root`` (relative posix path -> bytes)."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def make_manager(repo_root: Path, git: Any, *, license_lookup: Optional[Any] = None, **settings_env: str):
    """VendorSyncManager with the fake backend, no backoff sleeps, and isolated settings."""
    from gitvendor.core.manager import VendorSyncManager
    from gitvendor.core.settings import load_settings

    environ = {f"GIT_VENDOR_{k}": v for k, v in settings_env.items()}
    settings = load_settings(repo_root, environ=environ)
    return VendorSyncManager(
        repo_root,
        settings,
        git=git,
        license_lookup=license_lookup,
        sleep=lambda _seconds: None,
    )


__all__ = ["vendor_record", "write_config", "read_lock", "snapshot_tree", "make_manager"]
