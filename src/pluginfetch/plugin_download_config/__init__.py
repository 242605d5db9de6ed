"""
Plugin download planning.

This package handles:
1. Recognizing the archive kind of each declared plugin
2. Mapping plugin names to their place under the plugins directory
3. Tracking the status of every planned download
"""

from .plan_manager import DownloadPlan, DownloadPlanManager, DownloadStatus, PluginKind

__all__ = ["DownloadPlan", "DownloadPlanManager", "DownloadStatus", "PluginKind"]
