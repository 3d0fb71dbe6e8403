"""Translate SIGINT/SIGTERM into explicit run shutdowns."""

from __future__ import annotations

import logging
import signal
from contextlib import AbstractContextManager
from types import FrameType
from typing import Any, Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def exit_code_for_signal(signum: int) -> int:
    return 128 + int(signum)


class ShutdownSignals(AbstractContextManager["ShutdownSignals"]):
    """
    Route termination signals to a shutdown callback while a run is active.

    Each signal becomes `on_shutdown("interrupted by SIGxxx", 128 + signum)`.
    Previous handlers are restored on exit.
    """

    def __init__(
        self,
        on_shutdown: Callable[[str, int], None],
        signals: Iterable[int] = DEFAULT_SIGNALS,
    ) -> None:
        self._on_shutdown = on_shutdown
        self._signals = tuple(signals)
        self._prev_handlers: Dict[int, Any] = {}

    def __enter__(self) -> "ShutdownSignals":
        for sig in self._signals:
            try:
                self._prev_handlers[sig] = signal.getsignal(sig)
                signal.signal(sig, self._handle_signal)
            except (ValueError, OSError) as exc:
                # Only the main thread may install handlers.
                logger.debug("Cannot install handler for %s: %s", sig, exc)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        for sig, handler in self._prev_handlers.items():
            try:
                signal.signal(sig, handler)
            except (ValueError, OSError, TypeError):
                continue
        self._prev_handlers.clear()

    def _handle_signal(self, signum: int, frame: Optional[FrameType]) -> None:
        name = signal.Signals(signum).name
        logger.warning("Received %s, shutting down the run", name)
        self._on_shutdown(f"interrupted by {name}", exit_code_for_signal(signum))
