"""
Configuration parameters for pluginfetch.
"""

import inspect
import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from pluginfetch.pluginfetch_exceptions import PluginFetchException

CONFIG_FILE_NAME = "plugin-fetch.toml"


def _known_fields(cls, values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if k in inspect.signature(cls).parameters}


@dataclass(frozen=True)
class RetryPolicy:
    """
    Decides how many times a download is attempted and which HTTP statuses
    are worth another attempt.
    """

    max_attempts: int = 5
    retry_delay: float = 2.0
    retryable_statuses: Tuple[int, ...] = (439,)
    retry_server_errors: bool = True

    def __post_init__(self):
        if self.max_attempts < 1:
            raise PluginFetchException("max_attempts must be at least 1")
        if self.retry_delay < 0:
            raise PluginFetchException("retry_delay must not be negative")

    def is_retryable(self, status_code: int) -> bool:
        if status_code in self.retryable_statuses:
            return True
        return self.retry_server_errors and status_code >= 500

    @classmethod
    def from_dict(cls, env: Dict[str, Any]) -> "RetryPolicy":
        values = _known_fields(cls, env)
        if "retryable_statuses" in values:
            values["retryable_statuses"] = tuple(int(s) for s in values["retryable_statuses"])
        return cls(**values)


@dataclass(frozen=True)
class FetchConfig:
    """
    Configuration parameters
    """

    manifest_file: str = "package.json"
    lockfile_name: str = "theia-plugins.lock"
    request_timeout: float = 60.0
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

    @classmethod
    def from_dict(cls, env: Dict[str, Any]) -> "FetchConfig":
        """
        Create a FetchConfig instance from a dictionary, ignoring unknown keys.
        """
        values = _known_fields(cls, env)
        retry = values.get("retry_policy", env.get("retry"))
        if isinstance(retry, dict):
            values["retry_policy"] = RetryPolicy.from_dict(retry)
        elif retry is not None and not isinstance(retry, RetryPolicy):
            raise PluginFetchException("'retry' must be a table")
        return cls(**values)

    @classmethod
    def load(cls, root: pathlib.Path, config_path: Optional[pathlib.Path] = None) -> "FetchConfig":
        """
        Load the configuration for a project.

        Args:
            root: Project root, where the optional plugin-fetch.toml lives
            config_path: Explicit configuration file, which must exist

        Returns:
            FetchConfig with defaults for anything not configured

        Raises:
            PluginFetchException: If the configuration file is invalid
        """
        path = config_path if config_path is not None else pathlib.Path(root) / CONFIG_FILE_NAME
        if config_path is None and not path.is_file():
            return cls()
        try:
            with open(path, "rb") as f:
                config_dict = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise PluginFetchException(f"Failed to load {path}: {e}") from e

        fetch_section = config_dict.get("fetch", {})
        if not isinstance(fetch_section, dict):
            raise PluginFetchException(f"[fetch] in {path} must be a table")
        return cls.from_dict(fetch_section)
