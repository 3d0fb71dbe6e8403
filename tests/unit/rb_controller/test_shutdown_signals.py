"""Tests for signal-driven shutdown."""

from __future__ import annotations

import math
import signal
import threading
from concurrent.futures import Future

import pytest

from rb_controller.engine import RunHandle
from rb_controller.interrupts import ShutdownSignals, exit_code_for_signal
from rb_controller.lifecycle import ExternalShutdown, LifecycleMonitor


pytestmark = pytest.mark.unit_controller


class StubEngine:
    def __init__(self) -> None:
        self.stop_calls = 0

    def start(self) -> RunHandle:  # pragma: no cover - handles are built by the tests
        raise NotImplementedError

    def stop(self) -> None:
        self.stop_calls += 1


def test_exit_code_follows_shell_convention() -> None:
    assert exit_code_for_signal(signal.SIGINT) == 130
    assert exit_code_for_signal(signal.SIGTERM) == 143


def test_sigterm_becomes_a_shutdown_request() -> None:
    requests: list[tuple[str, int]] = []
    previous = signal.getsignal(signal.SIGTERM)

    with ShutdownSignals(lambda reason, code: requests.append((reason, code))):
        signal.raise_signal(signal.SIGTERM)

    assert requests == [("interrupted by SIGTERM", 143)]
    assert signal.getsignal(signal.SIGTERM) == previous


def test_signal_while_monitor_lock_is_held_does_not_block() -> None:
    engine = StubEngine()
    monitor = LifecycleMonitor(math.inf)

    with ShutdownSignals(monitor.request_shutdown):
        with monitor._watch_lock:
            signal.raise_signal(signal.SIGTERM)
        outcome = monitor.watch(engine, RunHandle(Future()))

    assert outcome == ExternalShutdown("interrupted by SIGTERM", 143)
    assert engine.stop_calls == 1


@pytest.mark.skipif(not hasattr(signal, "pthread_kill"), reason="needs pthread_kill")
def test_sigint_delivered_while_watching_ends_the_run() -> None:
    engine = StubEngine()
    monitor = LifecycleMonitor(math.inf)
    sender = threading.Timer(
        0.05, signal.pthread_kill, args=(threading.main_thread().ident, signal.SIGINT)
    )

    with ShutdownSignals(monitor.request_shutdown):
        sender.start()
        outcome = monitor.watch(engine, RunHandle(Future()))
    sender.join()

    assert outcome == ExternalShutdown("interrupted by SIGINT", 130)
    assert engine.stop_calls == 1
