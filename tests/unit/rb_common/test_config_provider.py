"""Tests for the configuration provider."""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from rb_common.config import BenchConfig
from rb_common.errors import ConfigurationError


pytestmark = pytest.mark.unit_common


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_later_files_override_earlier_keys(tmp_path: Path) -> None:
    base = _write(tmp_path / "base.yml", "duration: 10\ndriver: http\nconcurrent: 4\n")
    override = _write(tmp_path / "override.json", '{"duration": 2}')

    config = BenchConfig.load([base, override])

    assert config.get("duration") == 2
    assert config.get("driver") == "http"
    assert config.get("concurrent") == 4
    assert config.get("missing", "fallback") == "fallback"
    assert config.sources == (base, override)


def test_settings_defaults() -> None:
    settings = BenchConfig({}).settings
    assert settings.duration == 5
    assert settings.code_paths == []
    assert settings.source_dir is None
    assert settings.log_level == "debug"
    assert not settings.is_unbounded


@pytest.mark.parametrize("value", ["infinity", "Infinity", "inf"])
def test_infinity_duration_is_unbounded(value: str) -> None:
    settings = BenchConfig({"duration": value}).settings
    assert math.isinf(settings.duration)
    assert settings.is_unbounded


def test_code_paths_accepts_single_string() -> None:
    settings = BenchConfig({"code_paths": "deps/driver", "source_dir": ""}).settings
    assert settings.code_paths == ["deps/driver"]
    assert settings.source_dir is None


@pytest.mark.parametrize("value", [0, -1, "soon"])
def test_invalid_duration_is_a_configuration_error(value) -> None:
    with pytest.raises(ConfigurationError):
        _ = BenchConfig({"duration": value}).settings


def test_missing_file_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        BenchConfig.load([tmp_path / "nope.yml"])
    assert "nope.yml" in str(excinfo.value)


def test_non_mapping_file_is_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path / "list.yml", "- a\n- b\n")
    with pytest.raises(ConfigurationError):
        BenchConfig.load([path])


def test_empty_file_is_an_empty_mapping(tmp_path: Path) -> None:
    path = _write(tmp_path / "empty.yml", "")
    assert BenchConfig.load([path]).as_dict() == {}
