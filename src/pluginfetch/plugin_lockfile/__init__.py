"""
Plugin lockfile.

This package handles:
1. Loading a previously written lockfile
2. Looking up and recording plugin integrity hashes
3. Writing the lockfile back in a deterministic form
"""

from .lock_file import PluginLockFile, plugin_spec

__all__ = ["PluginLockFile", "plugin_spec"]
