"""
Pydantic data model for a single entry of the plugin lockfile.
"""

from pydantic import BaseModel, ConfigDict, Field


class PluginLock(BaseModel):
    """
    What was downloaded for one plugin spec, and the hash it must keep having.
    """

    model_config = ConfigDict(extra="allow")

    resolved: str = Field(..., description="URL where the plugin was downloaded from")
    integrity: str = Field(..., description="Subresource integrity hash of the plugin data")
