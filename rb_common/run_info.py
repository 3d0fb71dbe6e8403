"""Shared run metadata used across layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class RunInfo:
    """Lightweight metadata about a benchmark run."""

    run_id: str
    run_dir: Path
    results_root: Path
    created_at: datetime
    config_snapshots: Sequence[Path]
    outcome: Optional[Any] = None

    @property
    def exit_code(self) -> int:
        return getattr(self.outcome, "exit_code", 0)
