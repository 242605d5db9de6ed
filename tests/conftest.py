"""
Shared fixtures: plugin archives built in memory, a project directory with a
package.json, and HTTP clients backed by a mock transport.
"""

import io
import json
import pathlib
import tarfile
import zipfile
from typing import Callable, Dict, Optional

import httpx
import pytest

from pluginfetch.pluginfetch_config import FetchConfig, RetryPolicy
from tests.test_utils import SAMPLE_URL, RecordingHandler


@pytest.fixture
def vsix_payload() -> bytes:
    """A minimal .vsix: a zip holding a manifest and the extension folder."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("extension.vsixmanifest", "<PackageManifest/>")
        archive.writestr("extension/package.json", json.dumps({"name": "sample"}))
    return buffer.getvalue()


@pytest.fixture
def tar_gz_payload() -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        data = json.dumps({"name": "sample"}).encode()
        info = tarfile.TarInfo("package/package.json")
        info.size = len(data)
        archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


@pytest.fixture
def fast_config() -> FetchConfig:
    """Default settings, without waiting between attempts."""
    return FetchConfig(retry_policy=RetryPolicy(retry_delay=0))


@pytest.fixture
def project_dir(tmp_path: pathlib.Path) -> Callable[..., pathlib.Path]:
    """Write a package.json declaring the given plugins; returns the project root."""

    def make(plugins: Optional[Dict[str, str]] = None, **extra) -> pathlib.Path:
        package = {
            "name": "app",
            "theiaPlugins": plugins if plugins is not None else {"sample": SAMPLE_URL},
        }
        package.update(extra)
        (tmp_path / "package.json").write_text(json.dumps(package), encoding="utf-8")
        return tmp_path

    return make


@pytest.fixture
def mock_client() -> Callable[[RecordingHandler], httpx.AsyncClient]:
    def make(handler: RecordingHandler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return make
