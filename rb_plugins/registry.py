"""
Registry mapping driver names to their implementations.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Dict, Iterable, Optional

from .interface import DriverPlugin, is_driver


logger = logging.getLogger(__name__)


class DriverRegistry:
    """In-memory registry of drivers contributed by loaded plugin modules."""

    def __init__(self, plugins: Optional[Iterable[Any]] = None):
        self._drivers: Dict[str, DriverPlugin] = {}
        if plugins:
            for plugin in plugins:
                self.register(plugin)

    def register(self, plugin: Any) -> None:
        """Register a driver, replacing any previous driver with the same name."""
        if not is_driver(plugin):
            raise TypeError(f"Unknown plugin type: {type(plugin)}")
        if plugin.name in self._drivers:
            logger.info("Replacing driver '%s'", plugin.name)
        self._drivers[plugin.name] = plugin

    def get(self, name: str) -> DriverPlugin:
        if name not in self._drivers:
            raise KeyError(f"Driver '{name}' not found")
        return self._drivers[name]

    def available(self) -> Dict[str, DriverPlugin]:
        return dict(self._drivers)

    def __contains__(self, name: object) -> bool:
        return name in self._drivers

    def __len__(self) -> int:
        return len(self._drivers)


def resolve_reference(reference: str) -> Any:
    """
    Resolve a `module:attribute` (or dotted `module.attribute`) reference.

    Resolution goes through the regular import system, so modules found on
    extended code paths and hot-loaded plugin modules are both reachable.
    """
    if ":" in reference:
        module_name, _, attr_path = reference.partition(":")
    else:
        module_name, _, attr_path = reference.rpartition(".")
    if not module_name or not attr_path:
        raise ValueError(f"Invalid reference '{reference}', expected 'module:attribute'")
    target: Any = importlib.import_module(module_name)
    for part in attr_path.split("."):
        target = getattr(target, part)
    return target
