"""Public API surface for rb_controller."""

from rb_controller.dimensions import estimate_data_size, log_dimensions, user_friendly_bytes
from rb_controller.engine import (
    BenchmarkEngine,
    DriverContext,
    DriverEngine,
    RunHandle,
    load_engine,
)
from rb_controller.interrupts import ShutdownSignals
from rb_controller.lifecycle import (
    ExternalShutdown,
    LifecycleMonitor,
    MonitorState,
    NormalCompletion,
    ShutdownOutcome,
    TimeoutCompletion,
)
from rb_controller.orchestrator import (
    OrchestratorOptions,
    PreparedRun,
    RunOrchestrator,
    build_engine,
)
from rb_controller.paths import (
    CURRENT_ALIAS,
    RunDirectory,
    adopt_directory_as_working_context,
    compute_run_identity,
    prepare_run_directory,
    snapshot_configuration,
    update_current_alias,
)

__all__ = [
    "BenchmarkEngine",
    "CURRENT_ALIAS",
    "DriverContext",
    "DriverEngine",
    "ExternalShutdown",
    "LifecycleMonitor",
    "MonitorState",
    "NormalCompletion",
    "OrchestratorOptions",
    "PreparedRun",
    "RunDirectory",
    "RunHandle",
    "RunOrchestrator",
    "ShutdownOutcome",
    "ShutdownSignals",
    "TimeoutCompletion",
    "adopt_directory_as_working_context",
    "build_engine",
    "compute_run_identity",
    "estimate_data_size",
    "load_engine",
    "log_dimensions",
    "prepare_run_directory",
    "snapshot_configuration",
    "update_current_alias",
    "user_friendly_bytes",
]
