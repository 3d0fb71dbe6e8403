"""Tests for the runbench command line and its exit codes."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

from rb_ui.cli import ClickException, main


pytestmark = pytest.mark.unit_ui

QUICK_DRIVER = """
class QuickDriver:
    name = "quick"

    def run(self, context):
        return None


PLUGIN = QuickDriver()
"""

ABORTING_DRIVER = """
class AbortingDriver:
    name = "aborting"

    def run(self, context):
        context.request_shutdown("operator abort", 2)
        context.stop_event.wait(5)


PLUGIN = AbortingDriver()
"""


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    plugins = tmp_path / "plugins"
    plugins.mkdir()
    (plugins / "rbt_cli_quick.py").write_text(QUICK_DRIVER)
    (plugins / "rbt_cli_aborting.py").write_text(ABORTING_DRIVER)
    return tmp_path


def _config(workspace: Path, driver: str, duration: str = "infinity") -> str:
    path = workspace / f"{driver}.yml"
    path.write_text(
        f"duration: {duration}\ndriver: {driver}\nsource_dir: plugins\nlog_level: warning\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.mark.parametrize("flag", ["--help", "-h"])
def test_help_exits_zero_without_side_effects(workspace: Path, flag: str, capsys) -> None:
    assert main([flag]) == 0
    captured = capsys.readouterr()
    assert "results-dir" in captured.out + captured.err
    assert not (workspace / "tests").exists()


def test_missing_config_is_a_usage_error(workspace: Path, capsys) -> None:
    assert main([]) == 1
    assert "Failed to parse arguments" in capsys.readouterr().err
    assert not (workspace / "tests").exists()


def test_unknown_option_is_a_usage_error(workspace: Path, capsys) -> None:
    assert main(["--bogus", _config(workspace, "quick")]) == 1
    err = capsys.readouterr().err
    assert "Failed to parse arguments" in err
    assert "--bogus" in err
    assert not (workspace / "tests").exists()


def test_reserved_bench_name_is_rejected(workspace: Path, capsys) -> None:
    assert main(["-n", "current", _config(workspace, "quick")]) == 1
    assert "Cannot use name 'current'" in capsys.readouterr().err
    assert not (workspace / "tests").exists()


def test_normal_completion_exits_zero(workspace: Path) -> None:
    code = main(["--results-dir", "out", "--bench-name", "cli-run", _config(workspace, "quick")])

    assert code == 0
    run_dir = workspace / "out" / "cli-run"
    assert (run_dir / "quick.yml").exists()
    assert (run_dir / "console.log").exists()
    assert (workspace / "out" / "current").resolve() == run_dir.resolve()


def test_default_results_dir_is_tests(workspace: Path) -> None:
    assert main(["-n", "default-dir", _config(workspace, "quick")]) == 0
    assert (workspace / "tests" / "default-dir").is_dir()


def test_external_shutdown_exit_code_is_used(workspace: Path) -> None:
    code = main(["-d", "out", "-n", "aborted", _config(workspace, "aborting", duration="10")])
    assert code == 2


def test_fatal_setup_error_exits_one(workspace: Path) -> None:
    assert main(["-d", "out", str(workspace / "missing.yml")]) == 1
    assert not (workspace / "out").exists()


def test_usage_errors_are_typer_click_exceptions() -> None:
    assert issubclass(typer.BadParameter, ClickException)


def test_unbuildable_engine_exits_one_with_message(workspace: Path, capsys) -> None:
    (workspace / "plugins" / "rbt_cli_rigid.py").write_text(
        "def make_engine():\n    raise AssertionError('never called with arguments')\n"
    )
    config = workspace / "rigid.yml"
    config.write_text(
        "duration: 1\nengine: rbt_cli_rigid:make_engine\nsource_dir: plugins\nlog_level: warning\n",
        encoding="utf-8",
    )

    assert main(["-d", "out", "-n", "rigid", str(config)]) == 1
    assert "Cannot build engine" in (workspace / "out" / "rigid" / "error.log").read_text()
