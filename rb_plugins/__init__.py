"""Plugin facade: code path extension, source hot-loading, driver registry."""

from rb_plugins.api import (
    DriverPlugin,
    DriverRegistry,
    PluginLoadReport,
    extend_search_path,
    load_source_directory,
)

__all__ = [
    "DriverPlugin",
    "DriverRegistry",
    "PluginLoadReport",
    "extend_search_path",
    "load_source_directory",
]
