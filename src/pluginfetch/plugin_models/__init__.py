"""
Plugin models for pluginfetch.

This package provides Pydantic data models for the plugin manifest read
from package.json and for the entries of the plugin lockfile.
"""

from .plugin_lock import PluginLock
from .plugin_manifest import PLUGINS_DIR_FIELD, PLUGINS_FIELD, PluginManifest

__all__ = [
    "PLUGINS_DIR_FIELD",
    "PLUGINS_FIELD",
    "PluginLock",
    "PluginManifest",
]
