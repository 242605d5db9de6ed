"""
Plugin downloader.

This package handles:
1. Downloading plugins from URLs, with retries
2. Verifying downloads against the lockfile
3. Copying or extracting archives into the plugins directory
"""

from .downloader import DownloadResult, PluginDownloader
from .http_client import create_http_client

__all__ = ["DownloadResult", "PluginDownloader", "create_http_client"]
