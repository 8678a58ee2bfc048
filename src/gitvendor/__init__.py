"""
gitvendor - reproducible vendoring of external git repositories

Pulls third-party source trees into a project at pinned commits, records the
pins and content checksums in a lock file, and reports drift and license
compliance for every vendored dependency.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
