"""Configuration helpers for rb_common."""

from .env import parse_bool_env
from .provider import BenchConfig, OrchestratorSettings

__all__ = ["BenchConfig", "OrchestratorSettings", "parse_bool_env"]
