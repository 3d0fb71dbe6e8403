"""Helpers for run directory and identifier management."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Tuple

from rb_common.errors import ReservedNameError, SetupFatalError

logger = logging.getLogger(__name__)

CURRENT_ALIAS = "current"
DEFAULT_RESULTS_DIRNAME = "tests"
RUN_ID_FORMAT = "%Y%m%d_%H%M%S"


@dataclass(frozen=True)
class RunDirectory:
    """Filesystem location dedicated to one run."""

    run_id: str
    path: Path
    created_at: datetime
    config_snapshots: Tuple[Path, ...] = ()


def generate_run_id(now: Optional[datetime] = None) -> str:
    """Generate a local-time, second-precision run identifier."""
    return (now or datetime.now()).strftime(RUN_ID_FORMAT)


def compute_run_identity(
    supplied_name: Optional[str], *, now: Optional[datetime] = None
) -> str:
    """
    Return the run identity, rejecting the reserved alias name.

    Omitted names are derived from the local clock, so two runs started in the
    same second get the same identity.
    """
    if supplied_name == CURRENT_ALIAS:
        raise ReservedNameError(
            f"Cannot use name '{CURRENT_ALIAS}'",
            context={"name": supplied_name},
        )
    if supplied_name:
        return supplied_name
    return generate_run_id(now)


def resolve_results_dir(base_results_dir: Optional[str | os.PathLike[str]] = None) -> Path:
    """Absolute results root, defaulting to `<cwd>/tests`."""
    if base_results_dir is None or os.fspath(base_results_dir) == "":
        return Path.cwd() / DEFAULT_RESULTS_DIRNAME
    return Path(os.path.abspath(os.fspath(base_results_dir)))


def prepare_run_directory(
    base_results_dir: Optional[str | os.PathLike[str]], identity: str
) -> RunDirectory:
    """Create `<results>/<identity>` and any missing ancestors."""
    run_path = resolve_results_dir(base_results_dir) / identity
    try:
        run_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SetupFatalError(
            f"Cannot create run directory {run_path}: {exc}",
            context={"path": run_path},
            cause=exc,
        ) from exc
    logger.debug("Prepared run directory %s", run_path)
    return RunDirectory(run_id=identity, path=run_path, created_at=datetime.now())


def update_current_alias(
    base_results_dir: Optional[str | os.PathLike[str]], run_directory: RunDirectory
) -> Path:
    """
    Point `<results>/current` at the run directory.

    The old alias is removed before the new one is created; a crash between
    the two steps leaves no alias at all.
    """
    link = resolve_results_dir(base_results_dir) / CURRENT_ALIAS
    target = run_directory.path
    try:
        if link.is_dir() and not link.is_symlink():
            raise SetupFatalError(
                f"Cannot replace {link}: it is a real directory, not an alias",
                context={"link": link},
            )
        link.unlink(missing_ok=True)
        link.symlink_to(target, target_is_directory=True)
    except OSError as exc:
        raise SetupFatalError(
            f"Cannot point {link} at {target}: {exc}",
            context={"link": link, "target": target},
            cause=exc,
        ) from exc
    if link.resolve() != target.resolve():
        raise SetupFatalError(
            f"Alias {link} does not resolve to {target}",
            context={"link": link, "target": target},
        )
    return link


def snapshot_configuration(
    run_directory: RunDirectory, config_paths: Iterable[str | os.PathLike[str]]
) -> RunDirectory:
    """Copy each configuration file, by basename, into the run directory."""
    copied = list(run_directory.config_snapshots)
    for config_path in config_paths:
        source = Path(config_path)
        destination = run_directory.path / source.name
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            raise SetupFatalError(
                f"Cannot copy configuration {source} into {run_directory.path}: {exc}",
                context={"source": source, "destination": destination},
                cause=exc,
            ) from exc
        copied.append(destination)
    return replace(run_directory, config_snapshots=tuple(copied))


def adopt_directory_as_working_context(run_directory: RunDirectory) -> None:
    """Make relative paths resolve under the run directory."""
    try:
        os.chdir(run_directory.path)
    except OSError as exc:
        raise SetupFatalError(
            f"Cannot change working directory to {run_directory.path}: {exc}",
            context={"path": run_directory.path},
            cause=exc,
        ) from exc
