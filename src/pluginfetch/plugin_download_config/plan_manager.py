"""
Download plan manager.

Turns the plugin declarations of a manifest into download plans: which kind
of archive each plugin is, and where it ends up under the plugins directory.
"""

import pathlib
from enum import Enum
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from pluginfetch.pluginfetch_exceptions import UnsupportedPluginTypeError


class DownloadStatus:
    """Enumeration of download statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SKIPPED = "skipped"
    COMPLETED = "completed"
    FAILED = "failed"


class PluginKind(Enum):
    """Archive kinds a plugin can be published as, keyed by URL suffix."""

    TAR_GZ = ".tar.gz"
    VSIX = ".vsix"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def is_single_file(self) -> bool:
        """Whether the archive is itself a usable plugin when kept packed."""
        return self is PluginKind.VSIX

    @classmethod
    def from_url(cls, url: str) -> Optional["PluginKind"]:
        path = urlsplit(url).path
        for kind in cls:
            if path.endswith(kind.value):
                return kind
        return None


class DownloadPlan:
    """
    A plan to download a specific plugin.

    Captures all information needed to download and place a plugin.
    """

    def __init__(
            self,
            plugin: str,
            url: str,
            kind: PluginKind,
            target_path: pathlib.Path,
            keep_packed: bool,
            status: str = DownloadStatus.PENDING,
    ):
        """
        Initialize a download plan.

        Args:
            plugin: Plugin short name, as declared in the manifest
            url: URL to download from
            kind: Archive kind, derived from the URL
            target_path: File or directory the plugin is materialized as
            keep_packed: Copy the archive as-is instead of unpacking it
            status: Current download status
        """
        self.plugin = plugin
        self.url = url
        self.kind = kind
        self.target_path = target_path
        self.keep_packed = keep_packed
        self.status = status
        self.error_message: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"DownloadPlan(plugin={self.plugin}, "
            f"status={self.status}, url={self.url})"
        )


class DownloadPlanManager:
    """
    Creates download plans for the plugins of a manifest.
    """

    def __init__(self, plugins_dir: pathlib.Path, packed: bool = False):
        """
        Args:
            plugins_dir: Absolute directory plugins are materialized into
            packed: Keep single-file archives packed instead of unpacking them
        """
        self.plugins_dir = pathlib.Path(plugins_dir)
        self.packed = packed
        self.download_plans: Dict[str, DownloadPlan] = {}

    def create_download_plan(self, plugin: str, url: str) -> DownloadPlan:
        """
        Create and remember the download plan for one plugin.

        Raises:
            UnsupportedPluginTypeError: If the URL does not name a known archive kind
        """
        kind = PluginKind.from_url(url)
        if kind is None:
            raise UnsupportedPluginTypeError(plugin, url)

        keep_packed = self.packed and kind.is_single_file
        plan = DownloadPlan(
            plugin=plugin,
            url=url,
            kind=kind,
            target_path=self._get_target_path(plugin, kind, keep_packed),
            keep_packed=keep_packed,
        )
        self.download_plans[plugin] = plan
        return plan

    def _get_target_path(self, plugin: str, kind: PluginKind, keep_packed: bool) -> pathlib.Path:
        # e.g. "vscode/bat" -> "vscode-bat", or "vscode-bat.vsix" when kept packed
        name = plugin.replace("/", "-")
        if keep_packed:
            name += kind.extension
        return self.plugins_dir / name

    def get_in_progress_downloads(self) -> List[DownloadPlan]:
        return [p for p in self.download_plans.values() if p.status == DownloadStatus.IN_PROGRESS]
