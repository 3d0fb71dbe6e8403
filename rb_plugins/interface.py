"""Driver plugin interface consumed by the benchmark engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class DriverPlugin(ABC):
    """
    Abstract base class for driver/generator plugins.

    A driver is a named unit the engine dispatches to. `run` receives the
    engine's driver context and should return when the context's stop event
    is set.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier used in the `driver` configuration key."""
        pass

    @property
    def description(self) -> str:
        return ""

    @abstractmethod
    def run(self, context: Any) -> Any:
        """Generate load until done or asked to stop."""
        pass


def is_driver(candidate: Any) -> bool:
    """Duck-type check for drivers defined without subclassing `DriverPlugin`."""
    if isinstance(candidate, DriverPlugin):
        return True
    return isinstance(getattr(candidate, "name", None), str) and callable(
        getattr(candidate, "run", None)
    )
