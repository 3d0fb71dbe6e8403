"""Module search path extension for user code directories."""

from __future__ import annotations

import importlib
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, List, MutableSequence, Optional

from rb_common.errors import SearchPathError

logger = logging.getLogger(__name__)

# Conventional build output directory holding importable code of a project.
CODE_DIR_NAME = "lib"


def code_path_for(entry: str | os.PathLike[str]) -> Path:
    """Return the absolute directory registered for a configured code path."""
    absolute = Path(os.path.abspath(os.fspath(entry)))
    if absolute.name == CODE_DIR_NAME:
        return absolute
    return absolute / CODE_DIR_NAME


def _rejection_reason(path: Path, search_path: MutableSequence[str]) -> Optional[str]:
    if not path.exists():
        return "bad_directory: path does not exist"
    if not path.is_dir():
        return "bad_directory: path is not a directory"
    if str(path) in search_path:
        return "duplicate: path is already on the search path"
    return None


def extend_search_path(
    paths: Iterable[str | os.PathLike[str]],
    *,
    sys_path: Optional[MutableSequence[str]] = None,
) -> List[Path]:
    """
    Append code paths to the module search path, in order.

    Each entry is mapped through `code_path_for`. The first entry the resolver
    rejects raises `SearchPathError`; entries after it are never attempted and
    entries before it stay registered.
    """
    search_path = sys.path if sys_path is None else sys_path
    added: List[Path] = []
    for entry in paths:
        code_path = code_path_for(entry)
        reason = _rejection_reason(code_path, search_path)
        if reason is not None:
            raise SearchPathError(
                f"Failed to add {code_path} to code path: {reason}",
                context={"entry": entry, "code_path": code_path, "reason": reason},
            )
        search_path.append(str(code_path))
        added.append(code_path)
        logger.debug("Added %s to code path", code_path)
    if added:
        importlib.invalidate_caches()
    return added
