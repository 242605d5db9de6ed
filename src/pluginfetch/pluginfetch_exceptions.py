"""
This module contains the exceptions raised by the pluginfetch framework.
"""

from typing import List, Optional


class PluginFetchException(Exception):
    """
    Exceptions raised by the pluginfetch framework.
    """

    def __init__(self, message: str):
        """
        Initializes the exception with the given message.
        """
        super().__init__(message)


class ManifestError(PluginFetchException):
    """
    The manifest could not be read. Fatal: raised before any download starts.
    """


class MissingManifestFieldError(ManifestError):
    """
    A mandatory manifest field is absent.
    """

    def __init__(self, field_name: str):
        super().__init__(f"missing mandatory '{field_name}' property.")
        self.field_name = field_name


class MalformedLockfileError(PluginFetchException):
    """
    The persisted lockfile could not be parsed.
    """


class DuplicateLockKeyError(PluginFetchException):
    """
    A lock entry was inserted twice for the same plugin spec.
    """

    def __init__(self, plugin_spec: str):
        super().__init__(f"lock for {plugin_spec} already exist")
        self.plugin_spec = plugin_spec


class PluginDownloadFailure(PluginFetchException):
    """
    Base class for failures scoped to a single plugin.

    These are captured per plugin, collected by the orchestrator and
    reported together at the end of a run.
    """

    def __init__(self, plugin: str, reason: str):
        super().__init__(f"{plugin}: {reason}")
        self.plugin = plugin
        self.reason = reason

    def describe(self) -> str:
        return f"x {self}"


class UnsupportedPluginTypeError(PluginDownloadFailure):
    def __init__(self, plugin: str, url: str):
        super().__init__(plugin, f"has an unsupported file type: '{url}'")
        self.url = url


class TransportFailureError(PluginDownloadFailure):
    def __init__(self, plugin: str, last_error: Optional[BaseException]):
        if last_error is None:
            reason = "failed to download (unknown reason)"
        else:
            reason = (
                "failed to download, last error: "
                f"{type(last_error).__name__}: {last_error}"
            )
        super().__init__(plugin, reason)
        self.last_error = last_error


class HttpStatusError(PluginDownloadFailure):
    def __init__(self, plugin: str, status_code: int, reason_phrase: str):
        super().__init__(
            plugin, f"failed to download with: {status_code} {reason_phrase}".rstrip()
        )
        self.status_code = status_code
        self.reason_phrase = reason_phrase


class IntegrityMismatchError(PluginDownloadFailure):
    def __init__(self, plugin: str, expected: str, actual: str):
        super().__init__(plugin, "failed to verify checksum")
        self.expected = expected
        self.actual = actual


class MaterializationError(PluginDownloadFailure):
    """
    The payload could not be staged, copied or unpacked.
    """


class PluginsDownloadError(PluginFetchException):
    """
    Aggregate failure raised once at the end of a run.
    """

    def __init__(self, failures: List[str]):
        super().__init__(
            "Errors downloading some plugins. "
            "To make these errors non fatal, re-run with --ignore-errors"
        )
        self.failures = list(failures)
