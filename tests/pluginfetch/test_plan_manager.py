"""
Tests for download planning.
"""

import pytest

from pluginfetch.plugin_download_config import (
    DownloadPlanManager,
    DownloadStatus,
    PluginKind,
)
from pluginfetch.pluginfetch_exceptions import UnsupportedPluginTypeError
from tests.test_utils import SAMPLE_URL

TAR_URL = "https://example.test/releases/tool-2.1.0.tar.gz"


@pytest.mark.parametrize(
    "url, kind",
    [
        (SAMPLE_URL, PluginKind.VSIX),
        (TAR_URL, PluginKind.TAR_GZ),
        (SAMPLE_URL + "?token=abc#frag", PluginKind.VSIX),
        ("https://example.test/tool.zip", None),
        ("https://example.test/vsix", None),
    ],
)
def test_kind_from_url(url, kind):
    assert PluginKind.from_url(url) is kind


def test_unpacked_target_is_a_directory_named_after_the_plugin(tmp_path):
    manager = DownloadPlanManager(tmp_path)
    plan = manager.create_download_plan("vscode/bat", SAMPLE_URL)

    assert plan.target_path == tmp_path / "vscode-bat"
    assert plan.kind is PluginKind.VSIX
    assert not plan.keep_packed
    assert plan.status == DownloadStatus.PENDING


def test_every_slash_is_replaced(tmp_path):
    plan = DownloadPlanManager(tmp_path).create_download_plan("a/b/c", SAMPLE_URL)

    assert plan.target_path == tmp_path / "a-b-c"


def test_packed_vsix_keeps_extension(tmp_path):
    plan = DownloadPlanManager(tmp_path, packed=True).create_download_plan("vscode/bat", SAMPLE_URL)

    assert plan.keep_packed
    assert plan.target_path == tmp_path / "vscode-bat.vsix"


def test_packed_tarball_is_still_unpacked(tmp_path):
    plan = DownloadPlanManager(tmp_path, packed=True).create_download_plan("tool", TAR_URL)

    assert not plan.keep_packed
    assert plan.target_path == tmp_path / "tool"


def test_unsupported_type(tmp_path):
    manager = DownloadPlanManager(tmp_path)

    with pytest.raises(UnsupportedPluginTypeError) as exc_info:
        manager.create_download_plan("tool", "https://example.test/tool.zip")
    assert exc_info.value.plugin == "tool"
    assert "unsupported file type" in str(exc_info.value)
    assert manager.download_plans == {}


def test_in_progress_downloads(tmp_path):
    manager = DownloadPlanManager(tmp_path)
    first = manager.create_download_plan("first", SAMPLE_URL)
    second = manager.create_download_plan("second", TAR_URL)
    first.status = DownloadStatus.COMPLETED
    second.status = DownloadStatus.IN_PROGRESS

    assert manager.create_download_plan("third", SAMPLE_URL).status == DownloadStatus.PENDING
    assert [p.plugin for p in manager.get_in_progress_downloads()] == ["second"]
