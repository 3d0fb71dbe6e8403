"""Sequential run bootstrap followed by the supervised engine run."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from rb_common.config import BenchConfig
from rb_common.logging import RunLogging, configure_run_logging
from rb_common.run_info import RunInfo
from rb_controller.dimensions import log_dimensions
from rb_controller.engine import BenchmarkEngine, DriverEngine, ShutdownFn, load_engine
from rb_controller.interrupts import ShutdownSignals
from rb_controller.lifecycle import LifecycleMonitor, ShutdownOutcome, TimerFactory
from rb_controller.paths import (
    RunDirectory,
    adopt_directory_as_working_context,
    compute_run_identity,
    prepare_run_directory,
    resolve_results_dir,
    snapshot_configuration,
    update_current_alias,
)
from rb_plugins.registry import DriverRegistry
from rb_plugins.search_path import extend_search_path
from rb_plugins.source_loader import PluginLoadReport, load_source_directory

logger = logging.getLogger(__name__)

EngineFactory = Callable[[BenchConfig, DriverRegistry, ShutdownFn], BenchmarkEngine]


def build_engine(
    config: BenchConfig, registry: DriverRegistry, shutdown: ShutdownFn
) -> BenchmarkEngine:
    """Configured `engine` factory if any, otherwise the built-in driver engine."""
    reference = config.settings.engine
    if reference:
        return load_engine(reference, config=config, registry=registry, shutdown=shutdown)
    return DriverEngine(config, registry, shutdown=shutdown)


@dataclass
class OrchestratorOptions:
    """Everything a run needs, resolved once at startup."""

    config_files: Sequence[Path]
    results_dir: Optional[Path] = None
    bench_name: Optional[str] = None
    handle_signals: bool = True
    configure_logging: bool = True
    timer_factory: TimerFactory = threading.Timer


@dataclass
class PreparedRun:
    """State produced by the setup phases; read-only once the engine starts."""

    config: BenchConfig
    run_directory: RunDirectory
    results_root: Path
    alias: Path
    search_path: list[Path] = field(default_factory=list)
    plugins: PluginLoadReport = field(default_factory=PluginLoadReport)


class RunOrchestrator:
    """Bootstrap, extend, start and supervise one benchmark run."""

    def __init__(
        self,
        options: OrchestratorOptions,
        *,
        registry: Optional[DriverRegistry] = None,
        engine_factory: EngineFactory = build_engine,
    ) -> None:
        self.options = options
        self.registry = registry or DriverRegistry()
        self.engine_factory = engine_factory
        self.monitor: Optional[LifecycleMonitor] = None
        self.prepared: Optional[PreparedRun] = None
        self.run_logging: Optional[RunLogging] = None

    def prepare(self) -> PreparedRun:
        """Run every setup phase; any fatal error propagates before the engine exists."""
        opts = self.options
        run_id = compute_run_identity(opts.bench_name)
        config = BenchConfig.load(opts.config_files)
        settings = config.settings

        results_root = resolve_results_dir(opts.results_dir)
        run_directory = prepare_run_directory(results_root, run_id)
        alias = update_current_alias(results_root, run_directory)

        if opts.configure_logging:
            self.run_logging = configure_run_logging(
                run_directory.path, console_level=settings.log_level
            )
        logger.info("Starting run %s in %s", run_id, run_directory.path)

        search_path = extend_search_path(settings.code_paths)
        plugins = load_source_directory(settings.source_dir, self.registry.register)

        run_directory = snapshot_configuration(run_directory, opts.config_files)
        adopt_directory_as_working_context(run_directory)
        log_dimensions(config)

        self.prepared = PreparedRun(
            config=config,
            run_directory=run_directory,
            results_root=results_root,
            alias=alias,
            search_path=search_path,
            plugins=plugins,
        )
        return self.prepared

    def request_shutdown(self, reason: str, exit_code: int = 1) -> None:
        if self.monitor is None:
            raise RuntimeError("No run is being supervised")
        self.monitor.request_shutdown(reason, exit_code)

    def supervise(self, prepared: PreparedRun) -> ShutdownOutcome:
        """Start the engine and block until the lifecycle race resolves."""
        settings = prepared.config.settings
        self.monitor = LifecycleMonitor(
            settings.duration, timer_factory=self.options.timer_factory
        )
        engine = self.engine_factory(
            prepared.config, self.registry, self.monitor.request_shutdown
        )
        if self.options.handle_signals:
            with ShutdownSignals(self.monitor.request_shutdown):
                return self.monitor.watch(engine, engine.start())
        return self.monitor.watch(engine, engine.start())

    def run(self) -> RunInfo:
        prepared = self.prepare()
        outcome = self.supervise(prepared)
        return RunInfo(
            run_id=prepared.run_directory.run_id,
            run_dir=prepared.run_directory.path,
            results_root=prepared.results_root,
            created_at=prepared.run_directory.created_at,
            config_snapshots=prepared.run_directory.config_snapshots,
            outcome=outcome,
        )
