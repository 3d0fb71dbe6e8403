"""Public API surface for rb_common."""

from rb_common.config import BenchConfig, OrchestratorSettings
from rb_common.errors import (
    ConfigurationError,
    EngineError,
    PluginLoadError,
    RBError,
    ReservedNameError,
    SearchPathError,
    SetupFatalError,
    error_to_payload,
)
from rb_common.logging import RunLogging, configure_logging, configure_run_logging
from rb_common.run_info import RunInfo

__all__ = [
    "BenchConfig",
    "ConfigurationError",
    "EngineError",
    "OrchestratorSettings",
    "PluginLoadError",
    "RBError",
    "ReservedNameError",
    "RunInfo",
    "RunLogging",
    "SearchPathError",
    "SetupFatalError",
    "configure_logging",
    "configure_run_logging",
    "error_to_payload",
]
