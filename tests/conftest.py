import logging
import sys
import threading
from collections import defaultdict

import pytest
from rich.console import Console
from rich.table import Table


KNOWN_MARKERS = {"unit_common", "unit_plugins", "unit_controller", "unit_ui", "slow"}


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    """
    Custom hook to print statistics by marker at the end of the test session.
    """
    _ = (exitstatus, config)
    marker_stats = defaultdict(lambda: {"passed": 0, "failed": 0, "skipped": 0, "total": 0, "duration": 0.0})

    for outcome in ["passed", "failed", "skipped"]:
        for report in terminalreporter.stats.get(outcome, []):
            if report.when == "call" or (report.when == "setup" and report.outcome == "skipped"):
                duration = getattr(report, "duration", 0.0)
                for marker in KNOWN_MARKERS:
                    if marker in report.keywords:
                        stats = marker_stats[marker]
                        stats[outcome] += 1
                        stats["total"] += 1
                        stats["duration"] += duration

    if not marker_stats:
        return

    table = Table(title="Test Statistics by Marker", show_header=True, header_style="bold magenta")
    table.add_column("Marker", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Duration (s)", justify="right", style="blue")

    for marker in sorted(marker_stats):
        stats = marker_stats[marker]
        table.add_row(
            marker,
            str(stats["total"]),
            str(stats["passed"]),
            str(stats["failed"]),
            str(stats["skipped"]),
            f"{stats['duration']:.2f}",
        )

    console = Console()
    console.print("\n")
    console.print(table)


@pytest.fixture(autouse=True)
def isolate_process_state(monkeypatch, tmp_path_factory):
    """Restore sys.path, hot-loaded modules, root logging and hooks touched by a run."""
    monkeypatch.setattr(sys, "path", list(sys.path))
    temp_root = str(tmp_path_factory.getbasetemp())
    root = logging.getLogger()
    handlers_before = list(root.handlers)
    level_before = root.level
    excepthook_before = sys.excepthook
    thread_excepthook_before = threading.excepthook
    yield
    for name, module in list(sys.modules.items()):
        if str(getattr(module, "__file__", None) or "").startswith(temp_root):
            sys.modules.pop(name, None)
    root.handlers[:] = handlers_before
    root.setLevel(level_before)
    sys.excepthook = excepthook_before
    threading.excepthook = thread_excepthook_before
