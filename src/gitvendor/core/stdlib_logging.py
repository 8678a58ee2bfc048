from __future__ import annotations

import logging
import sys
from pathlib import Path

from gitvendor.core.utils.io import ensure_directory

_STDERR_HANDLER: logging.Handler | None = None
_FILE_HANDLER: logging.Handler | None = None
_JSON_MODE_NULL_HANDLER_INSTALLED: bool = False

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_stdlib_logging(
    *,
    level: str = "WARNING",
    verbose: bool = False,
    log_path: Path | None = None,
    stderr: bool = True,
) -> None:
    """Configure the ``gitvendor`` logger hierarchy.

    Installs one stderr handler (DEBUG when ``verbose``, otherwise ``level``)
    and, when ``log_path`` is given, a file handler at ``level``. With
    ``stderr=False`` (JSON mode) only CRITICAL records reach stderr. Calling it
    again replaces the handlers installed by the previous call.
    """
    global _STDERR_HANDLER, _FILE_HANDLER

    logger = logging.getLogger("gitvendor")
    stderr_level = logging.DEBUG if verbose else _level_from_name(level)
    if not stderr:
        stderr_level = logging.CRITICAL
    file_level = _level_from_name(level)

    for handler in (_STDERR_HANDLER, _FILE_HANDLER):
        if handler is not None:
            logger.removeHandler(handler)
            handler.close()
    _STDERR_HANDLER = None
    _FILE_HANDLER = None

    stream = logging.StreamHandler(sys.stderr)
    stream.setLevel(stderr_level)
    stream.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(stream)
    _STDERR_HANDLER = stream

    effective = stderr_level
    if log_path is not None:
        ensure_directory(Path(log_path).parent)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(fh)
        _FILE_HANDLER = fh
        effective = min(effective, file_level)

    logger.setLevel(effective)
    logger.propagate = False


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: drop handlers installed by :func:`configure_stdlib_logging`."""
    global _STDERR_HANDLER, _FILE_HANDLER
    logger = logging.getLogger("gitvendor")
    for handler in (_STDERR_HANDLER, _FILE_HANDLER):
        if handler is not None:
            logger.removeHandler(handler)
            handler.close()
    _STDERR_HANDLER = None
    _FILE_HANDLER = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def suppress_lastresort_in_json_mode() -> None:
    """Keep stdlib logging's lastResort handler from polluting JSON output.

    Python emits WARNING+ records to stderr through ``lastResort`` when no
    handler is configured. In ``--json`` mode the root logger gets a
    NullHandler instead.
    """
    global _JSON_MODE_NULL_HANDLER_INSTALLED

    root = logging.getLogger()
    if root.handlers or _JSON_MODE_NULL_HANDLER_INSTALLED:
        return
    root.addHandler(logging.NullHandler())
    _JSON_MODE_NULL_HANDLER_INSTALLED = True


__all__ = ["configure_stdlib_logging", "reset_stdlib_logging_for_tests", "suppress_lastresort_in_json_mode"]
