"""Estimate the data volume a run will touch from its key/value generators."""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from rb_common.config import BenchConfig

logger = logging.getLogger(__name__)

_SIZED_KEY_GENERATORS = {"sequential_int", "uniform_int", "pareto_int"}


def user_friendly_bytes(size: float) -> Tuple[float, str]:
    """Scale a byte count by 1024 while it exceeds 1000, up to GB."""
    value, unit = float(size), "bytes"
    for desc in ("KB", "MB", "GB"):
        if value > 1000:
            value, unit = value / 1024, desc
    return value, unit


def _single_entry(spec: Any) -> Optional[Tuple[str, Any]]:
    if isinstance(spec, dict) and len(spec) == 1:
        return next(iter(spec.items()))
    if isinstance(spec, (list, tuple)) and len(spec) == 2 and isinstance(spec[0], str):
        return spec[0], spec[1]
    return None


def key_dimension(spec: Any) -> Optional[int]:
    """Number of distinct keys a key generator can produce, if known."""
    entry = _single_entry(spec)
    if entry is None:
        return None
    kind, arg = entry
    if kind in _SIZED_KEY_GENERATORS and isinstance(arg, int):
        return arg
    if kind == "partitioned_sequential_int":
        if isinstance(arg, int):
            return arg
        if isinstance(arg, (list, tuple)) and len(arg) == 2:
            start, end = arg
            return int(end) - int(start)
    return None


def value_dimension(spec: Any, keyspace: int) -> int:
    """Bytes stored across the key space for a value generator, 0 if unknown."""
    entry = _single_entry(spec)
    if entry is None:
        return 0
    kind, arg = entry
    if kind == "fixed_bin" and isinstance(arg, int):
        return arg * keyspace
    return 0


def estimate_data_size(config: BenchConfig) -> Optional[Tuple[float, str]]:
    keyspace = key_dimension(config.get("key_generator"))
    if keyspace is None:
        return None
    return user_friendly_bytes(value_dimension(config.get("value_generator"), keyspace))


def log_dimensions(config: BenchConfig) -> None:
    estimate = estimate_data_size(config)
    if estimate is None:
        return
    size, unit = estimate
    logger.info("Est. data size: %.2f %s", size, unit)
