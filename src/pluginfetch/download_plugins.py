"""
Downloads every plugin declared in a project's package.json.

A run reads the manifest, loads the lockfile, downloads all plugins
concurrently, reports every failure, and writes the lockfile back.
"""

import dataclasses
import logging
import os
import pathlib
from typing import List, Optional

import httpx

from pluginfetch.plugin_download_config import DownloadPlanManager
from pluginfetch.plugin_downloader import DownloadResult, PluginDownloader, create_http_client
from pluginfetch.plugin_lockfile import PluginLockFile
from pluginfetch.plugin_models import PluginManifest
from pluginfetch.pluginfetch_config import FetchConfig
from pluginfetch.pluginfetch_exceptions import PluginsDownloadError
from pluginfetch.pluginfetch_logger import PluginFetchLogger


@dataclasses.dataclass(frozen=True)
class DownloadPluginsOptions:
    """
    Available options when downloading.
    """

    # Keep .vsix plugins as single files instead of unpacking them.
    packed: bool = False
    # Report failed downloads without failing the run.
    ignore_errors: bool = False


async def download_plugins(
    options: Optional[DownloadPluginsOptions] = None,
    *,
    cwd: Optional[os.PathLike] = None,
    config: Optional[FetchConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
    logger: Optional[PluginFetchLogger] = None,
) -> List[DownloadResult]:
    """
    Download the plugins of the project in `cwd`.

    Args:
        options: Packing and error handling options
        cwd: Project root holding package.json and the lockfile; defaults to the current directory
        config: Fetch settings; defaults to the project's plugin-fetch.toml, if any
        client: HTTP client to use; one is created (and closed) for the run if not given
        logger: Logger for progress and error messages

    Returns:
        The result of every declared plugin, in manifest order

    Raises:
        ManifestError: If package.json cannot be read or lacks the plugin declarations
        MalformedLockfileError: If the existing lockfile cannot be parsed
        PluginsDownloadError: If some plugins failed and errors are not ignored;
            the lockfile has been written by then
    """
    options = options or DownloadPluginsOptions()
    logger = logger or PluginFetchLogger()
    root = pathlib.Path(cwd if cwd is not None else os.getcwd()).resolve()
    config = config or FetchConfig.load(root)

    logger.log("--- downloading plugins ---", logging.INFO)

    manifest = PluginManifest.from_file(root / config.manifest_file)
    plugins_dir = root / manifest.plugins_dir
    plugins_dir.mkdir(parents=True, exist_ok=True)

    lock_file = PluginLockFile(root / config.lockfile_name, logger)
    lock_file.load()

    owns_client = client is None
    if client is None:
        client = create_http_client(config)
    downloader = PluginDownloader(
        DownloadPlanManager(plugins_dir, packed=options.packed),
        lock_file,
        client,
        config,
        logger,
    )
    try:
        results = await downloader.download_all(manifest.plugins)
    finally:
        if owns_client:
            await client.aclose()

    summary = downloader.get_download_summary()
    logger.log(
        f"Download summary: {summary['completed']} completed, "
        f"{summary['skipped']} skipped, {summary['failed']} failed",
        logging.INFO,
    )

    failures = [result.error.describe() for result in results if result.failed]
    for failure in failures:
        logger.log(failure, logging.ERROR)

    lock_file.save()

    if failures and not options.ignore_errors:
        raise PluginsDownloadError(failures)
    return results
