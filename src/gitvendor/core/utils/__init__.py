"""Shared utilities for the gitvendor core (I/O, merging, retries, time)."""
from __future__ import annotations
