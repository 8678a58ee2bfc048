"""Tests for gitvendor logging configuration."""
from __future__ import annotations

import logging
from pathlib import Path

from gitvendor.core.stdlib_logging import configure_stdlib_logging


def test_verbose_enables_debug_on_stderr(capsys) -> None:
    configure_stdlib_logging(level="WARNING", verbose=True)

    logging.getLogger("gitvendor.core.sync").debug("planning %d vendor(s)", 2)

    assert "DEBUG gitvendor.core.sync: planning 2 vendor(s)" in capsys.readouterr().err


def test_json_mode_keeps_stderr_quiet(capsys) -> None:
    configure_stdlib_logging(level="DEBUG", stderr=False)

    logging.getLogger("gitvendor.core.lock").error("lock write failed")

    assert capsys.readouterr().err == ""


def test_file_handler_records_at_configured_level(tmp_path: Path, capsys) -> None:
    log_path = tmp_path / "logs" / "git-vendor.log"
    configure_stdlib_logging(level="INFO", log_path=log_path, stderr=False)

    logger = logging.getLogger("gitvendor.core.cache")
    logger.debug("cache miss")
    logger.info("Evicted cached tree abcd")
    for handler in logging.getLogger("gitvendor").handlers:
        handler.flush()

    content = log_path.read_text(encoding="utf-8")
    assert "Evicted cached tree abcd" in content
    assert "cache miss" not in content


def test_reconfiguring_replaces_handlers() -> None:
    configure_stdlib_logging()
    configure_stdlib_logging(verbose=True)

    assert len(logging.getLogger("gitvendor").handlers) == 1
