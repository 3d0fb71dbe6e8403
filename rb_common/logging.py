"""Shared logging configuration using structlog."""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from rb_common.config.env import parse_bool_env

ERROR_LOG_NAME = "error.log"
CONSOLE_LOG_NAME = "console.log"
CRASH_LOG_NAME = "crash.log"
CRASH_LOGGER_NAME = "runbench.crash"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def _resolve_level(value: str | int | None, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if value is None:
        return logging.INFO
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    return logging.getLevelNamesMapping().get(value.upper(), logging.INFO)


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _build_formatter(json: bool, colors: bool = True) -> logging.Formatter:
    renderer: structlog.types.Processor
    if json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_pre_chain(),
    )


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(
    *,
    level: str | int | None = None,
    debug: bool = False,
    log_file: str | None = None,
    json: bool | None = None,
    force: bool = False,
) -> None:
    """Configure stdlib logging and structlog with a shared formatter."""
    env_level = os.environ.get("RB_LOG_LEVEL")
    env_json = parse_bool_env(os.environ.get("RB_LOG_JSON"))
    env_log_file = os.environ.get("RB_LOG_FILE")

    resolved_level = _resolve_level(level or env_level, debug)
    resolved_json = bool(env_json if json is None else json)
    resolved_log_file = env_log_file if log_file is None else log_file

    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        _configure_structlog()
        return

    handlers: list[logging.Handler] = []
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(_build_formatter(resolved_json))
    handlers.append(stream_handler)

    if resolved_log_file:
        file_handler = logging.FileHandler(resolved_log_file)
        file_handler.setFormatter(_build_formatter(resolved_json, colors=False))
        handlers.append(file_handler)

    if force:
        root_logger.handlers.clear()

    root_logger.setLevel(resolved_level)
    for handler in handlers:
        root_logger.addHandler(handler)

    _configure_structlog()


@dataclass
class RunLogging:
    """Handles installed for one run directory; `close()` detaches them."""

    error_log: Path
    console_log: Path
    crash_log: Path
    handlers: list[logging.Handler] = field(default_factory=list)
    crash_handler: Optional[logging.Handler] = None
    _prev_excepthook: Optional[Callable[..., Any]] = None
    _prev_thread_excepthook: Optional[Callable[..., Any]] = None

    def close(self) -> None:
        root_logger = logging.getLogger()
        for handler in self.handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()
        if self.crash_handler is not None:
            logging.getLogger(CRASH_LOGGER_NAME).removeHandler(self.crash_handler)
            self.crash_handler.close()
            self.crash_handler = None
        if self._prev_excepthook is not None:
            sys.excepthook = self._prev_excepthook
            self._prev_excepthook = None
        if self._prev_thread_excepthook is not None:
            threading.excepthook = self._prev_thread_excepthook
            self._prev_thread_excepthook = None


def _rotating_handler(path: Path, level: int, json: bool) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(json, colors=False))
    return handler


def configure_run_logging(
    run_dir: Path,
    *,
    console_level: str | int | None = "debug",
    json: bool | None = None,
) -> RunLogging:
    """
    Route logging into the run directory.

    The console handler honours `console_level`; `error.log` keeps ERROR and
    above, `console.log` keeps everything, and `crash.log` receives uncaught
    exceptions from the main thread and from worker threads.
    """
    env_json = parse_bool_env(os.environ.get("RB_LOG_JSON"))
    resolved_json = bool(env_json if json is None else json)

    run_logging = RunLogging(
        error_log=run_dir / ERROR_LOG_NAME,
        console_log=run_dir / CONSOLE_LOG_NAME,
        crash_log=run_dir / CRASH_LOG_NAME,
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_resolve_level(console_level, debug=False))
    console.setFormatter(_build_formatter(resolved_json))
    run_logging.handlers = [
        console,
        _rotating_handler(run_logging.error_log, logging.ERROR, resolved_json),
        _rotating_handler(run_logging.console_log, logging.DEBUG, resolved_json),
    ]

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG)
    for handler in run_logging.handlers:
        root_logger.addHandler(handler)

    crash_handler = logging.FileHandler(run_logging.crash_log, encoding="utf-8")
    crash_handler.setFormatter(_build_formatter(resolved_json, colors=False))
    crash_logger = logging.getLogger(CRASH_LOGGER_NAME)
    crash_logger.addHandler(crash_handler)
    run_logging.crash_handler = crash_handler

    run_logging._prev_excepthook = sys.excepthook
    run_logging._prev_thread_excepthook = threading.excepthook

    def _excepthook(exc_type, exc, tb) -> None:
        crash_logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))

    def _thread_excepthook(args: threading.ExceptHookArgs) -> None:
        thread_name = args.thread.name if args.thread else "unknown"
        crash_logger.critical(
            "Uncaught exception in thread %s",
            thread_name,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook

    _configure_structlog()
    return run_logging
