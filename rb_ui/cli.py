"""
Command-line interface for runbench.

Bootstraps a run directory, loads plugins, starts the benchmark engine and
exits with the status of the run.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.markup import escape

from rb_common.errors import RBError, ReservedNameError, error_to_payload
from rb_common.logging import configure_logging
from rb_common.run_info import RunInfo
from rb_controller.lifecycle import ExternalShutdown, NormalCompletion, TimeoutCompletion
from rb_controller.orchestrator import OrchestratorOptions, RunOrchestrator

logger = logging.getLogger(__name__)
err_console = Console(stderr=True)


def _typer_exception(name: str) -> type:
    """Return the click exception class typer itself raises (it may bundle its own click)."""
    for klass in typer.BadParameter.__mro__:
        if klass.__name__ == name:
            return klass
    raise ImportError(f"typer does not expose click's {name}")


ClickException = _typer_exception("ClickException")

PROG_NAME = "runbench"

app = typer.Typer(
    help="Run a benchmark described by one or more configuration files.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _fail(message: str) -> None:
    err_console.print(f"[bold red]{escape(message)}[/bold red]")


def _describe(info: RunInfo) -> str:
    outcome = info.outcome
    if isinstance(outcome, NormalCompletion):
        return f"stopped: {outcome.info}"
    if isinstance(outcome, ExternalShutdown):
        return f"shut down ({outcome.reason}), exit code {outcome.exit_code}"
    if isinstance(outcome, TimeoutCompletion):
        return f"completed after {outcome.duration_minutes:g} mins"
    return "finished"


@app.command()
def run(
    config_files: List[Path] = typer.Argument(
        ...,
        metavar="CONFIG_FILE...",
        help="Benchmark configuration files (YAML or JSON), merged in order.",
    ),
    results_dir: Optional[Path] = typer.Option(
        None,
        "--results-dir",
        "-d",
        help="Base directory to store test results, defaults to ./tests",
    ),
    bench_name: Optional[str] = typer.Option(
        None,
        "--bench-name",
        "-n",
        help="Name to identify the run, defaults to timestamp",
    ),
) -> None:
    """Prepare the run directory, load plugins and supervise the benchmark."""
    orchestrator = RunOrchestrator(
        OrchestratorOptions(
            config_files=list(config_files),
            results_dir=results_dir,
            bench_name=bench_name,
        )
    )
    try:
        info = orchestrator.run()
    except ReservedNameError as exc:
        _fail(str(exc))
        raise typer.Exit(1)
    except RBError as exc:
        if orchestrator.run_logging is not None:
            logger.error("Run setup failed: %s", exc)
            logger.debug("Failure details: %s", error_to_payload(exc))
        else:
            _fail(str(exc))
        raise typer.Exit(1)
    finally:
        if orchestrator.run_logging is not None:
            orchestrator.run_logging.close()

    err_console.print(f"Run [cyan]{escape(info.run_id)}[/cyan] {escape(_describe(info))}")
    err_console.print(f"Results in {escape(str(info.run_dir))}")
    raise typer.Exit(info.exit_code)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Invoke the CLI and return the process exit code.

    Argument errors exit with 1 rather than click's default of 2.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    configure_logging(force=True)
    try:
        result = app(args=args, prog_name=PROG_NAME, standalone_mode=False)
    except ClickException as exc:
        _fail(f"Failed to parse arguments: {exc.format_message()}")
        ctx = getattr(exc, "ctx", None)
        if ctx is not None:
            typer.echo(ctx.get_help(), err=True)
        return 1
    except typer.Abort:
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
