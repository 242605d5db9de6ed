"""
pluginfetch: reproducible, integrity-verified downloads of editor plugins.

The plugins declared in a project's package.json are downloaded
concurrently, checked against (or recorded in) a lockfile of subresource
integrity hashes, and unpacked or copied into the plugins directory.
"""

from pluginfetch.download_plugins import DownloadPluginsOptions, download_plugins
from pluginfetch.plugin_downloader import DownloadResult
from pluginfetch.pluginfetch_config import FetchConfig, RetryPolicy
from pluginfetch.pluginfetch_exceptions import PluginFetchException, PluginsDownloadError
from pluginfetch.pluginfetch_logger import PluginFetchLogger

__all__ = [
    "DownloadPluginsOptions",
    "DownloadResult",
    "FetchConfig",
    "PluginFetchException",
    "PluginFetchLogger",
    "PluginsDownloadError",
    "RetryPolicy",
    "download_plugins",
]
