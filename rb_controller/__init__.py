"""Controller facade for run orchestration.

Re-exports the run directory manager, engine contract and lifecycle monitor.
"""

from rb_controller.engine import BenchmarkEngine, DriverEngine, RunHandle
from rb_controller.lifecycle import (
    ExternalShutdown,
    LifecycleMonitor,
    NormalCompletion,
    TimeoutCompletion,
)
from rb_controller.orchestrator import OrchestratorOptions, RunOrchestrator

__all__ = [
    "BenchmarkEngine",
    "DriverEngine",
    "ExternalShutdown",
    "LifecycleMonitor",
    "NormalCompletion",
    "OrchestratorOptions",
    "RunHandle",
    "RunOrchestrator",
    "TimeoutCompletion",
]
