"""Shared error taxonomy for runbench."""

from __future__ import annotations

from typing import Any, Mapping


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class RBError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__


class ReservedNameError(RBError):
    """The run name collides with the reserved alias."""


class SetupFatalError(RBError):
    """Failure while preparing the run; the engine must never start."""


class ConfigurationError(SetupFatalError):
    """Failure due to unreadable or invalid configuration."""


class SearchPathError(SetupFatalError):
    """A code path entry was rejected by the module resolver."""


class PluginLoadError(RBError):
    """Non-fatal failure compiling or activating one plugin source file."""


class EngineError(RBError):
    """Failure starting or resolving the benchmark engine."""


def error_to_payload(error: RBError) -> dict[str, Any]:
    """Convert an RBError to a log/report payload."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
