"""
Plugin lockfile.

Maps `<plugin>@<url>` plugin specs to the URL they were resolved from and the
integrity hash of what was downloaded there.
"""

import json
import logging
import os
import pathlib
import threading
from typing import Dict, Optional

from pydantic import ValidationError

from pluginfetch.plugin_models import PluginLock
from pluginfetch.pluginfetch_exceptions import DuplicateLockKeyError, MalformedLockfileError
from pluginfetch.pluginfetch_logger import PluginFetchLogger


def plugin_spec(plugin: str, url: str) -> str:
    return f"{plugin}@{url}"


class PluginLockFile:
    """
    Lock file with plugin integrity.

    Entries are only ever added; an entry loaded from disk is written back
    unchanged by save(), even if no plugin refers to it anymore.
    """

    def __init__(self, file_path: pathlib.Path, logger: Optional[PluginFetchLogger] = None):
        """
        Create an empty lock file; call load() to read an existing one.

        Args:
            file_path: Path of the lock file
            logger: Logger for progress messages
        """
        self.file_path = pathlib.Path(file_path)
        self.logger = logger or PluginFetchLogger()
        self.lock_mapping: Dict[str, PluginLock] = {}
        # True if a lock was added since the last load() or save()
        self.dirty = False
        self._mutation_lock = threading.Lock()

    def load(self) -> None:
        """
        Read the lock file if it exists.

        Raises:
            MalformedLockfileError: If the file is not a JSON object of lock entries
        """
        mapping: Dict[str, PluginLock] = {}
        if self.file_path.exists():
            self.logger.log(f"Using existing {self.file_path.name}", logging.INFO)
            try:
                raw = json.loads(self.file_path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                raise MalformedLockfileError(
                    f"Failed to read lockfile {self.file_path}: {e}"
                ) from e
            if not isinstance(raw, dict):
                raise MalformedLockfileError(
                    f"Lockfile {self.file_path} must contain a JSON object"
                )
            for spec, entry in raw.items():
                if not isinstance(entry, dict):
                    raise MalformedLockfileError(f"Invalid lock entry for {spec}")
                try:
                    mapping[spec] = PluginLock(**entry)
                except ValidationError as e:
                    raise MalformedLockfileError(f"Invalid lock entry for {spec}: {e}") from e
        with self._mutation_lock:
            self.lock_mapping = mapping
            self.dirty = False

    def get_lock(self, spec: str) -> Optional[PluginLock]:
        return self.lock_mapping.get(spec)

    def has_lock(self, spec: str) -> bool:
        return spec in self.lock_mapping

    def add_lock(self, spec: str, lock: PluginLock) -> None:
        """
        Record the lock for a plugin spec seen for the first time.

        Raises:
            DuplicateLockKeyError: If the spec already has a lock
        """
        with self._mutation_lock:
            if spec in self.lock_mapping:
                raise DuplicateLockKeyError(spec)
            self.lock_mapping[spec] = lock
            self.dirty = True

    def serialize(self) -> str:
        """
        Render the lock file: specs sorted, four-space indent, `\\n` line endings.
        """
        with self._mutation_lock:
            ordered = {
                spec: self.lock_mapping[spec].model_dump() for spec in sorted(self.lock_mapping)
            }
        return json.dumps(ordered, indent=4, ensure_ascii=False) + "\n"

    def save(self) -> pathlib.Path:
        """
        Write the lock file atomically.

        Returns:
            Path of the written lock file
        """
        self.logger.log(f"Saving plugin lockfile {self.file_path}", logging.INFO)
        payload = self.serialize().encode("utf-8")
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        try:
            temp_path.write_bytes(payload)
            os.replace(temp_path, self.file_path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise
        self.dirty = False
        self.logger.log(f"ok, saved plugin lockfile {self.file_path}", logging.INFO)
        return self.file_path
