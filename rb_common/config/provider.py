"""Configuration provider backed by YAML/JSON files."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rb_common.errors import ConfigurationError

logger = logging.getLogger(__name__)

INFINITY_TOKENS = {"infinity", "inf", "unbounded"}
DEFAULT_DURATION_MINUTES = 5.0


class OrchestratorSettings(BaseModel):
    """Keys of the benchmark configuration consumed by the orchestrator."""

    model_config = ConfigDict(extra="ignore")

    duration: float = Field(
        default=DEFAULT_DURATION_MINUTES,
        description="Run duration in minutes, or 'infinity' to run until the engine exits",
    )
    code_paths: List[str] = Field(
        default_factory=list,
        description="Directories appended to the module search path",
    )
    source_dir: Optional[str] = Field(
        default=None,
        description="Directory of plugin sources compiled and loaded at startup",
    )
    log_level: str = Field(default="debug", description="Console log verbosity")
    driver: Optional[str] = Field(
        default=None, description="Driver plugin name run by the built-in engine"
    )
    engine: Optional[str] = Field(
        default=None, description="Engine factory reference in 'module:attribute' form"
    )

    @field_validator("duration", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in INFINITY_TOKENS:
            return math.inf
        return value

    @field_validator("duration")
    @classmethod
    def _validate_duration(cls, value: float) -> float:
        if not value > 0:
            raise ValueError("duration must be a positive number of minutes or 'infinity'")
        return value

    @field_validator("code_paths", mode="before")
    @classmethod
    def _coerce_code_paths(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("source_dir", mode="before")
    @classmethod
    def _empty_source_dir(cls, value: Any) -> Any:
        if value in ("", []):
            return None
        return value

    @property
    def is_unbounded(self) -> bool:
        return math.isinf(self.duration)


class BenchConfig:
    """
    Read-only view over one or more merged configuration files.

    Files are read in order with `yaml.safe_load` (JSON documents are valid
    YAML) and merged shallowly; a key in a later file replaces the same key
    from an earlier one.
    """

    def __init__(
        self,
        values: Optional[Mapping[str, Any]] = None,
        sources: Iterable[Path] = (),
    ) -> None:
        self._values: Dict[str, Any] = dict(values or {})
        self.sources: tuple[Path, ...] = tuple(Path(p) for p in sources)
        self._settings: Optional[OrchestratorSettings] = None

    @classmethod
    def load(cls, paths: Iterable[Path]) -> "BenchConfig":
        values: Dict[str, Any] = {}
        sources: list[Path] = []
        for path in paths:
            path = Path(path)
            values.update(_read_config_file(path))
            sources.append(path)
            logger.debug("Loaded configuration from %s", path)
        return cls(values, sources)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    @property
    def settings(self) -> OrchestratorSettings:
        if self._settings is None:
            try:
                self._settings = OrchestratorSettings.model_validate(self._values)
            except ValidationError as exc:
                raise ConfigurationError(
                    "Invalid orchestrator configuration",
                    context={"sources": list(self.sources), "errors": exc.errors()},
                    cause=exc,
                ) from exc
        return self._settings

    def __contains__(self, key: object) -> bool:
        return key in self._values


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read configuration file {path}: {exc}",
            context={"path": path},
            cause=exc,
        ) from exc
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Cannot parse configuration file {path}: {exc}",
            context={"path": path},
            cause=exc,
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {path} must contain a mapping",
            context={"path": path, "type": type(data).__name__},
        )
    return data
