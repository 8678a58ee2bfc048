"""Core vendoring engine: stores, git backend, cache, scheduler and status."""
from __future__ import annotations

from gitvendor.core.cache import IncrementalCache
from gitvendor.core.config import ConfigStore
from gitvendor.core.git import GitOperations, SystemGitOperations
from gitvendor.core.lock import LockStore
from gitvendor.core.manager import VendorSyncManager
from gitvendor.core.status import StatusEngine, StatusOptions, StatusReport
from gitvendor.core.sync import SyncOptions, SyncReport, SyncScheduler

__all__ = [
    "ConfigStore",
    "LockStore",
    "IncrementalCache",
    "GitOperations",
    "SystemGitOperations",
    "SyncOptions",
    "SyncReport",
    "SyncScheduler",
    "StatusEngine",
    "StatusOptions",
    "StatusReport",
    "VendorSyncManager",
]
