"""Tests for the data size estimate."""

from __future__ import annotations

import pytest

from rb_common.config import BenchConfig
from rb_controller.dimensions import (
    estimate_data_size,
    key_dimension,
    user_friendly_bytes,
)


pytestmark = pytest.mark.unit_controller


def test_user_friendly_bytes_scales_past_thousand() -> None:
    assert user_friendly_bytes(512) == (512.0, "bytes")
    assert user_friendly_bytes(2048) == (2.0, "KB")
    size, unit = user_friendly_bytes(10_000 * 1_000_000)
    assert unit == "GB"
    assert size == pytest.approx(10_000 * 1_000_000 / 1024**3)


def test_key_dimension_forms() -> None:
    assert key_dimension({"uniform_int": 1000}) == 1000
    assert key_dimension(["sequential_int", 50]) == 50
    assert key_dimension({"partitioned_sequential_int": [100, 300]}) == 200
    assert key_dimension({"function": "custom"}) is None
    assert key_dimension(None) is None


def test_estimate_requires_key_generator() -> None:
    assert estimate_data_size(BenchConfig({"value_generator": {"fixed_bin": 10}})) is None


def test_estimate_multiplies_keys_by_value_size() -> None:
    config = BenchConfig(
        {"key_generator": {"uniform_int": 10_000}, "value_generator": {"fixed_bin": 10_000}}
    )
    size, unit = estimate_data_size(config)
    assert unit == "MB"
    assert size == pytest.approx(100_000_000 / 1024**2)
