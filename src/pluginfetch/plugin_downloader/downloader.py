"""
Plugin downloader implementation.

Handles downloading, verifying and placing plugins.
"""

import asyncio
import contextlib
import dataclasses
import logging
import os
import pathlib
import shutil
import tempfile
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import httpx

from pluginfetch.plugin_download_config import (
    DownloadPlan,
    DownloadPlanManager,
    DownloadStatus,
)
from pluginfetch.plugin_downloader.archive import ArchiveError, unpack
from pluginfetch.plugin_integrity import DEFAULT_ALGORITHM, digest_of, matches, strongest_algorithm
from pluginfetch.plugin_lockfile import PluginLockFile, plugin_spec
from pluginfetch.plugin_models import PluginLock
from pluginfetch.pluginfetch_config import FetchConfig
from pluginfetch.pluginfetch_exceptions import (
    DuplicateLockKeyError,
    HttpStatusError,
    IntegrityMismatchError,
    MaterializationError,
    PluginDownloadFailure,
    TransportFailureError,
)
from pluginfetch.pluginfetch_logger import PluginFetchLogger

STAGED_FILE_PREFIX = "plugin-download-"


@dataclasses.dataclass
class DownloadResult:
    """
    Outcome of downloading one plugin.
    """

    plugin: str
    status: str
    target_path: Optional[pathlib.Path] = None
    attempts: int = 0
    error: Optional[PluginDownloadFailure] = None
    # True when this run recorded the plugin's integrity for the first time
    trusted_on_first_use: bool = False

    @property
    def failed(self) -> bool:
        return self.status == DownloadStatus.FAILED


@contextlib.contextmanager
def staged_file() -> Iterator[pathlib.Path]:
    """
    A private temporary file, removed on every exit path.
    """
    fd, name = tempfile.mkstemp(prefix=STAGED_FILE_PREFIX)
    os.close(fd)
    path = pathlib.Path(name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)


class PluginDownloader:
    """
    Downloads, verifies and places plugins.

    Every plugin goes through the same steps: plan, skip if already present,
    request with retries, stage the body in a temporary file, check it against
    the lockfile (or record it there the first time) and finally copy or
    unpack it under the plugins directory. A failure in any step is returned
    as a failed DownloadResult; it never interrupts the other downloads.
    """

    def __init__(
        self,
        plan_manager: DownloadPlanManager,
        lock_file: PluginLockFile,
        client: httpx.AsyncClient,
        config: FetchConfig,
        logger: PluginFetchLogger,
    ):
        """
        Initialize the plugin downloader.

        Args:
            plan_manager: Creates the download plan of each plugin
            lock_file: Loaded lockfile, shared by all downloads
            client: HTTP client, shared by all downloads
            config: Retry policy and other fetch settings
            logger: Logger for progress and error messages
        """
        self.plan_manager = plan_manager
        self.lock_file = lock_file
        self.client = client
        self.config = config
        self.logger = logger
        self.results: Dict[str, DownloadResult] = {}

    async def download_all(self, plugins: Mapping[str, str]) -> List[DownloadResult]:
        """
        Download all plugins concurrently.

        Args:
            plugins: Plugin short name to URL; entries with an empty name are ignored

        Returns:
            One result per downloaded plugin, in the order of `plugins`

        Raises:
            DuplicateLockKeyError: If two downloads recorded the same plugin spec
        """
        names = [plugin for plugin in plugins if plugin]
        self.logger.log(f"Starting download of {len(names)} plugins", logging.INFO)

        outcomes = await asyncio.gather(
            *(self.download_plugin(plugin, plugins[plugin]) for plugin in names),
            return_exceptions=True,
        )

        results = []
        fault: Optional[BaseException] = None
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                fault = fault or outcome
                continue
            results.append(outcome)
        if fault is not None:
            raise fault
        return results

    async def download_plugin(self, plugin: str, url: str) -> DownloadResult:
        """
        Download a single plugin.

        Args:
            plugin: Plugin short name
            url: URL to download the plugin from

        Returns:
            The outcome; failures are reported in it rather than raised

        Raises:
            DuplicateLockKeyError: If the plugin spec was recorded concurrently
        """
        plan: Optional[DownloadPlan] = None
        try:
            plan = self.plan_manager.create_download_plan(plugin, url)

            if plan.target_path.exists():
                plan.status = DownloadStatus.SKIPPED
                self.logger.log(f"- {plugin}: already downloaded - skipping", logging.INFO)
                result = DownloadResult(plugin, DownloadStatus.SKIPPED, plan.target_path)
            else:
                plan.status = DownloadStatus.IN_PROGRESS
                result = await self._download(plan)
                plan.status = DownloadStatus.COMPLETED
                suffix = f" (after {result.attempts} attempts)" if result.attempts > 1 else ""
                self.logger.log(f"+ {plugin}: downloaded successfully{suffix}", logging.INFO)

        except DuplicateLockKeyError:
            raise

        except PluginDownloadFailure as e:
            result = self._failed(plan, plugin, e)

        except Exception as e:
            result = self._failed(
                plan, plugin, PluginDownloadFailure(plugin, f"failed to download: {e}")
            )

        self.results[plugin] = result
        return result

    def _failed(
        self, plan: Optional[DownloadPlan], plugin: str, error: PluginDownloadFailure
    ) -> DownloadResult:
        if plan is not None:
            plan.status = DownloadStatus.FAILED
            plan.error_message = str(error)
        return DownloadResult(
            plugin,
            DownloadStatus.FAILED,
            plan.target_path if plan is not None else None,
            error=error,
        )

    async def _download(self, plan: DownloadPlan) -> DownloadResult:
        with staged_file() as staged:
            response, attempts = await self._request_with_retries(plan)
            try:
                await self._stage(plan, response, staged)
            finally:
                await response.aclose()

            trusted_on_first_use = await self._check_integrity(plan, staged)
            await self._materialize(plan, staged)

        return DownloadResult(
            plan.plugin,
            DownloadStatus.COMPLETED,
            plan.target_path,
            attempts=attempts,
            trusted_on_first_use=trusted_on_first_use,
        )

    async def _request_with_retries(self, plan: DownloadPlan) -> Tuple[httpx.Response, int]:
        """
        Request the plugin until a non-retryable response arrives or the
        attempts run out.

        Returns:
            The open, streaming 200 response and the number of attempts made

        Raises:
            TransportFailureError: If the last attempt failed at the transport level
            HttpStatusError: If the final response is not a 200
        """
        policy = self.config.retry_policy
        response: Optional[httpx.Response] = None
        last_error: Optional[Exception] = None
        attempts = 0

        for attempt in range(policy.max_attempts):
            if attempt > 0:
                await asyncio.sleep(policy.retry_delay)
            if response is not None:
                await response.aclose()
                response = None
            attempts = attempt + 1
            last_error = None
            try:
                request = self.client.build_request("GET", plan.url)
                response = await self.client.send(request, stream=True)
            except httpx.TransportError as e:
                last_error = e
                self.logger.log(
                    f"{plan.plugin}: attempt {attempts} of {policy.max_attempts} failed: {e!r}",
                    logging.WARNING,
                )
                continue
            if not policy.is_retryable(response.status_code):
                break
            self.logger.log(
                f"{plan.plugin}: attempt {attempts} of {policy.max_attempts} "
                f"answered {response.status_code}",
                logging.WARNING,
            )

        if last_error is not None or response is None:
            raise TransportFailureError(plan.plugin, last_error)
        if response.status_code != 200:
            await response.aclose()
            raise HttpStatusError(plan.plugin, response.status_code, response.reason_phrase)
        return response, attempts

    @staticmethod
    async def _stage(plan: DownloadPlan, response: httpx.Response, staged: pathlib.Path) -> None:
        try:
            with open(staged, "wb") as f:
                async for chunk in response.aiter_bytes():
                    await asyncio.to_thread(f.write, chunk)
        except (httpx.HTTPError, httpx.StreamError, OSError) as e:
            raise MaterializationError(
                plan.plugin, f"failed to download, could not read response body: {e}"
            ) from e

    async def _check_integrity(self, plan: DownloadPlan, staged: pathlib.Path) -> bool:
        """
        Verify the staged file against the lockfile, or trust and record it
        when the lockfile has no entry for the plugin yet.

        Returns:
            True if a new lock entry was recorded

        Raises:
            IntegrityMismatchError: If the staged file does not match the recorded hash
        """
        spec = plugin_spec(plan.plugin, plan.url)
        lock = self.lock_file.get_lock(spec)

        if lock is None:
            self.logger.log(f"No signature for {spec} found in lockfile.", logging.WARNING)
            integrity = await self._hash_staged(plan, staged, DEFAULT_ALGORITHM)
            self.lock_file.add_lock(spec, PluginLock(resolved=plan.url, integrity=integrity))
            return True

        self.logger.log(f"checking integrity of {plan.plugin} against {lock.integrity}", logging.INFO)
        algorithm = strongest_algorithm(lock.integrity) or DEFAULT_ALGORITHM
        actual = await self._hash_staged(plan, staged, algorithm)
        if not matches(actual, lock.integrity):
            raise IntegrityMismatchError(plan.plugin, lock.integrity, actual)
        return False

    @staticmethod
    async def _hash_staged(plan: DownloadPlan, staged: pathlib.Path, algorithm: str) -> str:
        try:
            return await asyncio.to_thread(digest_of, staged, algorithm)
        except OSError as e:
            raise MaterializationError(plan.plugin, f"failed to hash download: {e}") from e

    async def _materialize(self, plan: DownloadPlan, staged: pathlib.Path) -> None:
        target = plan.target_path
        try:
            if plan.keep_packed:
                target.parent.mkdir(parents=True, exist_ok=True)
                await asyncio.to_thread(shutil.copyfile, staged, target)
            else:
                await asyncio.to_thread(unpack, staged, target)
        except (ArchiveError, OSError) as e:
            _remove_target(target)
            action = "copy" if plan.keep_packed else "unpack"
            raise MaterializationError(plan.plugin, f"failed to {action}: {e}") from e
        except Exception:
            _remove_target(target)
            raise

        try:
            self._verify_download(plan)
        except MaterializationError:
            _remove_target(target)
            raise

    def _verify_download(self, plan: DownloadPlan) -> None:
        """
        Check that the plugin landed where planned and is not empty.
        """
        target = plan.target_path
        if not target.exists():
            raise MaterializationError(plan.plugin, f"nothing was written to {target}")
        if target.is_dir():
            if not any(target.iterdir()):
                raise MaterializationError(plan.plugin, f"unpacked plugin is empty: {target}")
        elif target.stat().st_size == 0:
            raise MaterializationError(plan.plugin, f"downloaded file is empty: {target}")

    def get_download_summary(self) -> dict:
        """
        Get a summary of download results.

        Returns:
            Dictionary with counts of completed, skipped and failed downloads, and
            of downloads still in progress (non-zero only while download_all runs)
        """
        counts = {DownloadStatus.COMPLETED: 0, DownloadStatus.SKIPPED: 0, DownloadStatus.FAILED: 0}
        for result in self.results.values():
            counts[result.status] += 1
        in_progress = len(self.plan_manager.get_in_progress_downloads())

        return {
            "completed": counts[DownloadStatus.COMPLETED],
            "skipped": counts[DownloadStatus.SKIPPED],
            "failed": counts[DownloadStatus.FAILED],
            "in_progress": in_progress,
            "total": sum(counts.values()) + in_progress,
        }


def _remove_target(target: pathlib.Path) -> None:
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target, ignore_errors=True)
    else:
        target.unlink(missing_ok=True)
