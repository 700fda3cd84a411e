"""Plugin manifest model - describes a local plugin's identity and promised capabilities."""

from typing import List

from pydantic import BaseModel, Field


class CapabilityManifest(BaseModel):
    """Capabilities a plugin promises to provide."""

    services: List[str] = Field(default_factory=list, description="Service names")
    commands: List[str] = Field(default_factory=list, description="Command names")
    lifecycle: List[str] = Field(default_factory=list, description="Lifecycle event names")
    templates: List[str] = Field(default_factory=list, description="Overridden template references")


class PluginManifest(BaseModel):
    """Plugin manifest loaded from plugin.json."""

    name: str = Field(..., min_length=1, description="Globally unique plugin name, e.g. 'acme/clickhouse'")
    version: str = Field(default="1.0.0", description="Plugin version")
    description: str = Field(default="", description="Plugin description")
    requires: List[str] = Field(default_factory=list, description="Dependency declarations")
    entry_point: str = Field(
        ...,
        pattern=r"^[A-Za-z_][\w.]*:[A-Za-z_]\w*$",
        description="module:attribute relative to the plugin directory, e.g. 'plugin:ClickHousePlugin'",
    )
    capabilities: CapabilityManifest = Field(default_factory=CapabilityManifest)
