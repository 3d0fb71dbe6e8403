"""Public API surface for rb_plugins."""

from rb_plugins.interface import DriverPlugin, is_driver
from rb_plugins.registry import DriverRegistry, resolve_reference
from rb_plugins.search_path import CODE_DIR_NAME, code_path_for, extend_search_path
from rb_plugins.source_loader import (
    LoadedPluginModule,
    PluginLoadFailure,
    PluginLoadReport,
    discover_source_files,
    load_source_directory,
    load_source_file,
)

__all__ = [
    "CODE_DIR_NAME",
    "DriverPlugin",
    "DriverRegistry",
    "LoadedPluginModule",
    "PluginLoadFailure",
    "PluginLoadReport",
    "code_path_for",
    "discover_source_files",
    "extend_search_path",
    "is_driver",
    "load_source_directory",
    "load_source_file",
    "resolve_reference",
]
