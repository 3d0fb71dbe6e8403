"""Run lifecycle monitor: completion vs. explicit shutdown vs. duration deadline."""

from __future__ import annotations

import logging
import math
import queue
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Optional, Tuple, Union

from rb_controller.engine import BenchmarkEngine, RunHandle

logger = logging.getLogger(__name__)

DEADLINE_GRACE_SECONDS = 1.0
MAX_EXIT_CODE = 255


class MonitorState(Enum):
    RUNNING = auto()
    RESOLVED = auto()


class _EventKind(Enum):
    TERMINATED = auto()
    SHUTDOWN = auto()
    DEADLINE = auto()


@dataclass(frozen=True)
class NormalCompletion:
    """The engine's top-level unit exited on its own."""

    info: Any

    @property
    def exit_code(self) -> int:
        return 0


@dataclass(frozen=True)
class ExternalShutdown:
    """Shutdown requested with a reason; the process exits with `exit_code`."""

    reason: str
    exit_code: int


@dataclass(frozen=True)
class TimeoutCompletion:
    """The configured duration elapsed before anything else happened."""

    duration_minutes: float

    @property
    def exit_code(self) -> int:
        return 0


ShutdownOutcome = Union[NormalCompletion, ExternalShutdown, TimeoutCompletion]
TimerFactory = Callable[..., Any]


def format_minutes(minutes: float) -> str:
    return str(int(minutes)) if float(minutes).is_integer() else f"{minutes:g}"


class LifecycleMonitor:
    """
    Watch a started engine until exactly one of three events happens.

    Engine termination, `request_shutdown()` and the duration deadline all
    post into one queue; `watch()` blocks on it and the first event taken
    decides the outcome. Events arriving afterwards are discarded.
    """

    def __init__(
        self,
        duration_minutes: float,
        *,
        grace_seconds: float = DEADLINE_GRACE_SECONDS,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self.engine: Optional[BenchmarkEngine] = None
        self.duration_minutes = duration_minutes
        self.grace_seconds = grace_seconds
        self._timer_factory = timer_factory
        self._events: "queue.SimpleQueue[Tuple[_EventKind, Any]]" = queue.SimpleQueue()
        self._watch_lock = threading.Lock()
        self._timer: Optional[Any] = None
        self._watching = False
        self.state = MonitorState.RUNNING
        self.outcome: Optional[ShutdownOutcome] = None

    @property
    def deadline_seconds(self) -> Optional[float]:
        """Seconds until the timeout fires, or None for an unbounded run."""
        if math.isinf(self.duration_minutes):
            return None
        return self.duration_minutes * 60 + self.grace_seconds

    def _post(self, kind: _EventKind, payload: Any = None) -> None:
        # Called from signal handlers: enqueue only, never take a lock here.
        # Anything posted after resolution stays in the queue unread.
        if self.state is MonitorState.RESOLVED:
            return
        self._events.put((kind, payload))

    def request_shutdown(self, reason: str, exit_code: int = 1) -> None:
        """Deliver an explicit shutdown; no-op once the run is resolved.

        `exit_code` becomes the process exit status and must be within 0-255.
        """
        code = int(exit_code)
        if not 0 <= code <= MAX_EXIT_CODE:
            raise ValueError(f"exit code {code} is outside 0-{MAX_EXIT_CODE}")
        self._post(_EventKind.SHUTDOWN, (str(reason), code))

    def watch(self, engine: BenchmarkEngine, handle: RunHandle) -> ShutdownOutcome:
        """Block until the race resolves and return its outcome.

        Shutdowns requested before `watch()` stay queued and still count.
        `engine.stop()` is called when the run ends by shutdown or timeout.
        """
        with self._watch_lock:
            if self._watching or self.state is MonitorState.RESOLVED:
                raise RuntimeError("LifecycleMonitor.watch() may only be called once")
            self._watching = True
        self.engine = engine

        handle.on_termination(lambda info: self._post(_EventKind.TERMINATED, info))
        deadline = self.deadline_seconds
        if deadline is not None:
            self._timer = self._timer_factory(
                deadline, self._post, args=(_EventKind.DEADLINE,)
            )
            self._timer.daemon = True
            self._timer.start()
            logger.debug("Run deadline armed for %.1f seconds", deadline)

        kind, payload = self._events.get()
        self.state = MonitorState.RESOLVED
        if self._timer is not None:
            self._timer.cancel()

        self.outcome = self._resolve(kind, payload)
        return self.outcome

    def _resolve(self, kind: _EventKind, payload: Any) -> ShutdownOutcome:
        if kind is _EventKind.TERMINATED:
            logger.info("Test stopped: %s", payload)
            return NormalCompletion(payload)
        if kind is _EventKind.SHUTDOWN:
            reason, exit_code = payload
            self._stop_engine()
            logger.info("Test shutdown: %s", reason)
            return ExternalShutdown(reason, exit_code)
        self._stop_engine()
        logger.info("Test completed after %s mins.", format_minutes(self.duration_minutes))
        return TimeoutCompletion(self.duration_minutes)

    def _stop_engine(self) -> None:
        if self.engine is None:
            return
        try:
            self.engine.stop()
        except Exception:
            logger.exception("Benchmark engine failed to stop cleanly")
