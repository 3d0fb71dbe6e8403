"""
Benchmark engine contract and the built-in driver engine.

The orchestrator only needs `start()` to hand back a `RunHandle` whose
termination can be observed, and `stop()` to end the run early.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from rb_common.config import BenchConfig
from rb_common.errors import EngineError
from rb_plugins.registry import DriverRegistry, resolve_reference

logger = logging.getLogger(__name__)

ShutdownFn = Callable[[str, int], None]
NORMAL_TERMINATION = "normal"


def describe_termination(future: Future) -> Any:
    """Termination info of a finished unit, passed on verbatim."""
    exc = future.exception()
    if exc is not None:
        return f"crashed: {exc!r}"
    result = future.result()
    return NORMAL_TERMINATION if result is None else result


class RunHandle:
    """Observable handle on the engine's top-level unit of work."""

    def __init__(
        self,
        future: Future,
        name: str = "engine",
        thread: Optional[threading.Thread] = None,
    ) -> None:
        self.name = name
        self._future = future
        self._thread = thread

    @classmethod
    def from_thread(
        cls,
        target: Callable[[], Any],
        name: str = "engine",
        daemon: bool = True,
    ) -> "RunHandle":
        """Run target in a new thread and return a handle on it."""
        future: Future = Future()
        future.set_running_or_notify_cancel()

        def _runner() -> None:
            try:
                result = target()
            except BaseException as exc:
                logger.error("%s terminated with an exception", name, exc_info=exc)
                future.set_exception(exc)
            else:
                future.set_result(result)

        thread = threading.Thread(target=_runner, name=name, daemon=daemon)
        handle = cls(future, name=name, thread=thread)
        thread.start()
        return handle

    def on_termination(self, callback: Callable[[Any], None]) -> None:
        """Invoke callback once with the termination info; immediately if already done."""
        self._future.add_done_callback(lambda f: callback(describe_termination(f)))

    @property
    def terminated(self) -> bool:
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> Any:
        """Block until the unit exits and return its termination info."""
        self._future.exception(timeout=timeout)
        return describe_termination(self._future)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Join the backing thread; True when it has exited."""
        if self._thread is None:
            return self.terminated
        self._thread.join(timeout=timeout)
        return not self._thread.is_alive()


@runtime_checkable
class BenchmarkEngine(Protocol):
    def start(self) -> RunHandle: ...

    def stop(self) -> None: ...


@dataclass
class DriverContext:
    """What a driver receives from the engine."""

    config: BenchConfig
    stop_event: threading.Event = field(default_factory=threading.Event)
    shutdown: Optional[ShutdownFn] = None

    def should_stop(self) -> bool:
        return self.stop_event.is_set()

    def request_shutdown(self, reason: str, exit_code: int = 1) -> None:
        """Ask the orchestrator to end the run with the given exit code."""
        if self.shutdown is None:
            logger.warning("Shutdown requested without a listener: %s", reason)
            self.stop_event.set()
            return
        self.shutdown(reason, exit_code)


class DriverEngine:
    """Runs one registered driver in a worker thread."""

    def __init__(
        self,
        config: BenchConfig,
        registry: DriverRegistry,
        shutdown: Optional[ShutdownFn] = None,
        driver_name: Optional[str] = None,
        stop_timeout: float = 5.0,
    ) -> None:
        self.config = config
        self.registry = registry
        self.driver_name = driver_name or config.settings.driver
        self.stop_timeout = stop_timeout
        self.context = DriverContext(config=config, shutdown=shutdown)
        self._handle: Optional[RunHandle] = None
        self._lock = threading.Lock()
        self._stopped = False

    def start(self) -> RunHandle:
        if self._handle is not None:
            raise EngineError("Engine already started", context={"driver": self.driver_name})
        if not self.driver_name:
            raise EngineError("No driver configured; set 'driver' or 'engine' in the config")
        try:
            driver = self.registry.get(self.driver_name)
        except KeyError as exc:
            raise EngineError(
                f"Driver '{self.driver_name}' is not registered",
                context={"driver": self.driver_name, "available": sorted(self.registry.available())},
                cause=exc,
            ) from exc
        self._handle = RunHandle.from_thread(
            lambda: driver.run(self.context), name=f"driver-{self.driver_name}"
        )
        logger.info("Driver %s started", self.driver_name)
        return self._handle

    def stop(self) -> None:
        """Signal the driver to stop and wait a bounded time for it; safe to repeat."""
        with self._lock:
            if self._stopped:
                logger.debug("Driver %s was already stopped", self.driver_name)
                return
            self._stopped = True
        self.context.stop_event.set()
        if self._handle is not None and not self._handle.join(timeout=self.stop_timeout):
            logger.warning("Driver %s did not terminate gracefully", self.driver_name)
        logger.info("Driver %s stopped", self.driver_name)


def load_engine(reference: str, **kwargs: Any) -> BenchmarkEngine:
    """Build an engine from a `module:factory` reference."""
    try:
        factory = resolve_reference(reference)
    except (ImportError, AttributeError, ValueError) as exc:
        raise EngineError(
            f"Cannot resolve engine '{reference}': {exc}",
            context={"engine": reference},
            cause=exc,
        ) from exc
    try:
        engine = factory(**kwargs)
    except Exception as exc:
        raise EngineError(
            f"Cannot build engine '{reference}': {exc}",
            context={"engine": reference, "arguments": sorted(kwargs)},
            cause=exc,
        ) from exc
    if not isinstance(engine, BenchmarkEngine):
        raise EngineError(
            f"Engine '{reference}' does not provide start() and stop()",
            context={"engine": reference, "type": type(engine).__name__},
        )
    return engine
