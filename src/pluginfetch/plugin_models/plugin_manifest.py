"""
Pydantic data model for the plugin declarations in a project's package.json.

Only the two fields pluginfetch cares about are modeled; every other
package.json property is ignored.
"""

import json
import pathlib
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pluginfetch.pluginfetch_exceptions import ManifestError, MissingManifestFieldError

PLUGINS_FIELD = "theiaPlugins"
PLUGINS_DIR_FIELD = "theiaPluginsDir"


class PluginManifest(BaseModel):
    """
    The plugin section of a package.json.

    Structure:
    {
      "theiaPluginsDir": "plugins",
      "theiaPlugins": {
        "plugin_name": "https://host/path/plugin-1.0.0.vsix",
        ...
      }
    }
    """

    model_config = ConfigDict(extra="ignore")

    plugins: Optional[Dict[str, str]] = Field(
        None, alias=PLUGINS_FIELD, description="Plugin short name to download URL"
    )
    plugins_dir: str = Field(
        "plugins", alias=PLUGINS_DIR_FIELD, description="Output directory, relative to the project"
    )

    @classmethod
    def from_file(cls, path: pathlib.Path) -> "PluginManifest":
        """
        Read and validate a manifest.

        Args:
            path: Path to the package.json

        Returns:
            The validated manifest; `plugins` is guaranteed to be set

        Raises:
            ManifestError: If the file is missing, is not JSON or has ill-typed fields
            MissingManifestFieldError: If the plugin declarations are absent
        """
        try:
            raw = pathlib.Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ManifestError(f"Failed to read manifest {path}: {e}") from e
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ManifestError(f"Manifest {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ManifestError(f"Manifest {path} must contain a JSON object")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "PluginManifest":
        try:
            manifest = cls.model_validate(data)
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest: {e}") from e
        if manifest.plugins is None:
            raise MissingManifestFieldError(PLUGINS_FIELD)
        return manifest
