"""Shared helpers for runbench."""

from rb_common.api import BenchConfig, RunInfo, configure_logging

__all__ = ["BenchConfig", "configure_logging", "RunInfo"]
