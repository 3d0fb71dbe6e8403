"""Compile and hot-load plugin source files into the running process."""

from __future__ import annotations

import importlib.util
import logging
import sys
import types
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional

from rb_common.errors import PluginLoadError

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".py"
# Set on every module activated from a plugin source file.
PLUGIN_SOURCE_ATTR = "__plugin_source__"


@dataclass(frozen=True)
class LoadedPluginModule:
    """A plugin source file that compiled and is active under `name`."""

    name: str
    source: Path
    code: types.CodeType
    module: types.ModuleType


@dataclass(frozen=True)
class PluginLoadFailure:
    source: Path
    error: PluginLoadError


@dataclass
class PluginLoadReport:
    """Outcome of loading one source directory."""

    loaded: List[LoadedPluginModule] = field(default_factory=list)
    failures: List[PluginLoadFailure] = field(default_factory=list)

    @property
    def names(self) -> List[str]:
        return [item.name for item in self.loaded]


def discover_source_files(root: Path) -> List[Path]:
    """Return every plugin source file under root, recursively and sorted."""
    found = []
    for path in root.rglob(f"*{SOURCE_SUFFIX}"):
        rel_parts = path.relative_to(root).parts
        if any(part.startswith(".") or part == "__pycache__" for part in rel_parts):
            continue
        if path.is_file():
            found.append(path)
    return sorted(found)


def module_name_for(path: Path) -> str:
    return path.stem


def compile_source(path: Path) -> types.CodeType:
    """Compile a source file into an in-memory code object."""
    source = path.read_bytes()
    return compile(source, str(path), "exec", dont_inherit=True)


def is_plugin_module(module: Any) -> bool:
    return getattr(module, PLUGIN_SOURCE_ATTR, None) is not None


def activate_module(name: str, path: Path, code: types.CodeType) -> types.ModuleType:
    """
    Execute compiled code as module `name` and publish it in `sys.modules`.

    A module already active under the same name is replaced on success and
    left in place if execution fails. Only earlier plugin modules can be
    replaced: standard-library names and modules the host already imported
    are refused.
    """
    if name in sys.stdlib_module_names:
        raise ImportError(f"module name '{name}' would shadow the standard library")
    previous = sys.modules.get(name)
    if previous is not None and not is_plugin_module(previous):
        raise ImportError(f"module name '{name}' would replace an imported module")
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None:
        raise ImportError(f"cannot build a module spec for {path}")
    module = importlib.util.module_from_spec(spec)
    setattr(module, PLUGIN_SOURCE_ATTR, str(path))
    sys.modules[name] = module
    try:
        exec(code, module.__dict__)
    except BaseException:
        if previous is None:
            sys.modules.pop(name, None)
        else:
            sys.modules[name] = previous
        raise
    return module


def load_source_file(path: Path) -> LoadedPluginModule:
    """Compile and activate one file, raising `PluginLoadError` on failure."""
    name = module_name_for(path)
    try:
        code = compile_source(path)
    except (OSError, SyntaxError, ValueError) as exc:
        raise PluginLoadError(
            f"Failed to compile {path}: {exc}",
            context={"path": path, "module": name, "stage": "compile"},
            cause=exc,
        ) from exc
    try:
        module = activate_module(name, path, code)
    except KeyboardInterrupt:
        raise
    except BaseException as exc:
        raise PluginLoadError(
            f"Failed to load {path}: {exc}",
            context={"path": path, "module": name, "stage": "activate"},
            cause=exc,
        ) from exc
    return LoadedPluginModule(name=name, source=path, code=code, module=module)


def load_source_directory(
    source_dir: Optional[str | Path],
    register: Optional[Callable[[Any], None]] = None,
) -> PluginLoadReport:
    """
    Compile and load every source file found under `source_dir`.

    Failures are isolated per file: they are logged, collected in the report,
    and never stop the remaining files from loading. When `register` is given,
    drivers exported by each activated module are handed to it.
    """
    report = PluginLoadReport()
    if not source_dir:
        return report
    root = Path(source_dir)
    if not root.is_dir():
        logger.warning("Plugin source directory %s does not exist", root)
        return report

    for path in discover_source_files(root):
        try:
            loaded = load_source_file(path)
        except PluginLoadError as exc:
            logger.error("%s", exc)
            report.failures.append(PluginLoadFailure(source=path, error=exc))
            continue
        if loaded.name in report.names:
            logger.warning("Module %s from %s replaces an earlier source", loaded.name, path)
        report.loaded.append(loaded)
        logger.info("Loaded %s (%s)", loaded.name, path)
        if register is not None:
            register_from_module(loaded.module, register, source=str(path))

    logger.info(
        "Plugin sources: %d loaded, %d failed", len(report.loaded), len(report.failures)
    )
    return report


def register_from_module(
    module: Any,
    register: Callable[[Any], None],
    source: str,
) -> int:
    """Register PLUGIN / PLUGINS / get_plugins() exports from a python module."""
    try:
        if hasattr(module, "get_plugins") and callable(getattr(module, "get_plugins")):
            discovered = module.get_plugins()
        elif hasattr(module, "PLUGINS"):
            discovered = getattr(module, "PLUGINS")
        elif hasattr(module, "PLUGIN"):
            discovered = [getattr(module, "PLUGIN")]
        else:
            logger.debug("No PLUGIN/PLUGINS/get_plugins exports in %s", source)
            return 0
        candidates: Iterable[Any] = (
            discovered if isinstance(discovered, (list, tuple)) else [discovered]
        )

        registered = 0
        for plugin in candidates:
            if plugin is None:
                continue
            register(plugin)
            registered += 1
        if registered:
            logger.info("Registered %s driver(s) from %s", registered, source)
        return registered
    except KeyboardInterrupt:
        raise
    except BaseException as exc:
        logger.warning("Failed to register drivers from %s: %s", source, exc)
        return 0
