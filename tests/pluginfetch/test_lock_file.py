"""
Tests for the plugin lockfile.
"""

import json
import threading

import pytest

from pluginfetch.plugin_lockfile import PluginLockFile, plugin_spec
from pluginfetch.plugin_models import PluginLock
from pluginfetch.pluginfetch_exceptions import DuplicateLockKeyError, MalformedLockfileError
from tests.test_utils import SAMPLE_SPEC, SAMPLE_URL


@pytest.fixture
def lock_path(tmp_path):
    return tmp_path / "theia-plugins.lock"


def write_lock(path, mapping):
    path.write_text(json.dumps(mapping), encoding="utf-8")


class TestLoad:
    def test_absent_file_leaves_store_empty(self, lock_path):
        lock_file = PluginLockFile(lock_path)
        lock_file.load()

        assert lock_file.lock_mapping == {}
        assert not lock_file.has_lock(SAMPLE_SPEC)
        assert lock_file.get_lock(SAMPLE_SPEC) is None

    def test_existing_entries(self, lock_path):
        write_lock(lock_path, {SAMPLE_SPEC: {"resolved": SAMPLE_URL, "integrity": "sha512-abc"}})
        lock_file = PluginLockFile(lock_path)
        lock_file.load()

        assert lock_file.has_lock(SAMPLE_SPEC)
        assert lock_file.get_lock(SAMPLE_SPEC) == PluginLock(
            resolved=SAMPLE_URL, integrity="sha512-abc"
        )
        assert not lock_file.dirty

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps(["entry"]),
            json.dumps({SAMPLE_SPEC: "sha512-abc"}),
            json.dumps({SAMPLE_SPEC: {"resolved": SAMPLE_URL}}),
        ],
    )
    def test_malformed_content_is_fatal(self, lock_path, content):
        lock_path.write_text(content, encoding="utf-8")

        with pytest.raises(MalformedLockfileError):
            PluginLockFile(lock_path).load()


class TestAddLock:
    def test_plugin_spec(self):
        assert plugin_spec("sample", SAMPLE_URL) == SAMPLE_SPEC

    def test_add_marks_dirty(self, lock_path):
        lock_file = PluginLockFile(lock_path)
        lock_file.add_lock(SAMPLE_SPEC, PluginLock(resolved=SAMPLE_URL, integrity="sha512-abc"))

        assert lock_file.dirty
        assert lock_file.get_lock(SAMPLE_SPEC).integrity == "sha512-abc"

    def test_duplicate_is_rejected(self, lock_path):
        lock_file = PluginLockFile(lock_path)
        lock_file.add_lock(SAMPLE_SPEC, PluginLock(resolved=SAMPLE_URL, integrity="sha512-abc"))

        with pytest.raises(DuplicateLockKeyError) as exc_info:
            lock_file.add_lock(
                SAMPLE_SPEC, PluginLock(resolved=SAMPLE_URL, integrity="sha512-other")
            )
        assert exc_info.value.plugin_spec == SAMPLE_SPEC
        assert lock_file.get_lock(SAMPLE_SPEC).integrity == "sha512-abc"

    def test_concurrent_adds_from_threads(self, lock_path):
        """Test that adds from many threads all land, and a contested spec is added once."""
        lock_file = PluginLockFile(lock_path)
        duplicates = []

        def add(index):
            lock = PluginLock(resolved=SAMPLE_URL, integrity=f"sha512-{index}")
            lock_file.add_lock(f"plugin{index}@{SAMPLE_URL}", lock)
            try:
                lock_file.add_lock("contested@x", lock)
            except DuplicateLockKeyError:
                duplicates.append(index)

        threads = [threading.Thread(target=add, args=(i,)) for i in range(32)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(lock_file.lock_mapping) == 33
        assert len(duplicates) == 31


class TestSave:
    def test_sorted_four_space_lf(self, lock_path):
        lock_file = PluginLockFile(lock_path)
        lock_file.add_lock("zeta@https://z.test/z.vsix", PluginLock(resolved="https://z.test/z.vsix", integrity="sha512-z"))
        lock_file.add_lock("alpha@https://a.test/a.vsix", PluginLock(resolved="https://a.test/a.vsix", integrity="sha512-a"))
        lock_file.save()

        raw = lock_path.read_bytes()
        assert b"\r\n" not in raw
        assert raw.endswith(b"}\n")
        assert raw.decode("utf-8") == (
            "{\n"
            '    "alpha@https://a.test/a.vsix": {\n'
            '        "resolved": "https://a.test/a.vsix",\n'
            '        "integrity": "sha512-a"\n'
            "    },\n"
            '    "zeta@https://z.test/z.vsix": {\n'
            '        "resolved": "https://z.test/z.vsix",\n'
            '        "integrity": "sha512-z"\n'
            "    }\n"
            "}\n"
        )
        assert not lock_file.dirty
        assert not lock_path.with_name(lock_path.name + ".tmp").exists()

    def test_empty_store(self, lock_path):
        PluginLockFile(lock_path).save()

        assert lock_path.read_text(encoding="utf-8") == "{}\n"

    def test_reload_and_save_is_byte_identical(self, lock_path):
        first = PluginLockFile(lock_path)
        first.add_lock(SAMPLE_SPEC, PluginLock(resolved=SAMPLE_URL, integrity="sha512-abc"))
        first.add_lock("other@https://o.test/o.tar.gz", PluginLock(resolved="https://o.test/o.tar.gz", integrity="sha512-o"))
        first.save()
        written = lock_path.read_bytes()

        second = PluginLockFile(lock_path)
        second.load()
        second.save()

        assert lock_path.read_bytes() == written

    def test_stale_entries_are_kept(self, lock_path):
        """Test that entries nobody refers to anymore survive a load and save."""
        write_lock(
            lock_path,
            {"removed@https://r.test/r.vsix": {"resolved": "https://r.test/r.vsix", "integrity": "sha512-r"}},
        )
        lock_file = PluginLockFile(lock_path)
        lock_file.load()
        lock_file.add_lock(SAMPLE_SPEC, PluginLock(resolved=SAMPLE_URL, integrity="sha512-abc"))
        lock_file.save()

        saved = json.loads(lock_path.read_text(encoding="utf-8"))
        assert list(saved) == ["removed@https://r.test/r.vsix", SAMPLE_SPEC]
