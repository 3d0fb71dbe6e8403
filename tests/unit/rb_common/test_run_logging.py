"""Tests for per-run log destinations."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

import pytest

from rb_common.logging import configure_logging, configure_run_logging


pytestmark = pytest.mark.unit_common


def test_run_logging_splits_error_and_console_logs(tmp_path: Path) -> None:
    run_logging = configure_run_logging(tmp_path, console_level="warning")
    try:
        log = logging.getLogger("runbench.test")
        log.debug("debug detail")
        log.error("something broke")
    finally:
        run_logging.close()

    console_text = (tmp_path / "console.log").read_text()
    error_text = (tmp_path / "error.log").read_text()
    assert "debug detail" in console_text
    assert "something broke" in console_text
    assert "something broke" in error_text
    assert "debug detail" not in error_text
    assert (tmp_path / "crash.log").exists()


def test_uncaught_thread_exception_lands_in_crash_log(tmp_path: Path) -> None:
    run_logging = configure_run_logging(tmp_path)
    try:
        def _explode() -> None:
            raise RuntimeError("worker exploded")

        worker = threading.Thread(target=_explode, name="exploder")
        worker.start()
        worker.join()
    finally:
        run_logging.close()

    crash_text = (tmp_path / "crash.log").read_text()
    assert "exploder" in crash_text
    assert "worker exploded" in crash_text


def test_close_restores_hooks(tmp_path: Path) -> None:
    previous = sys.excepthook
    previous_thread = threading.excepthook
    run_logging = configure_run_logging(tmp_path)
    assert sys.excepthook is not previous
    run_logging.close()
    assert sys.excepthook is previous
    assert threading.excepthook is previous_thread
    assert run_logging.handlers == []


def test_configure_logging_honours_env_and_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    log_file = tmp_path / "cli.log"
    monkeypatch.setenv("RB_LOG_LEVEL", "warning")

    configure_logging(log_file=str(log_file), force=True)
    log = logging.getLogger("runbench.env")
    log.info("hidden")
    log.warning("visible")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logging.getLogger().level == logging.WARNING
    text = log_file.read_text()
    assert "visible" in text
    assert "hidden" not in text
