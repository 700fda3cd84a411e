"""Plugin system for dockyard.

Imports are lazy so that light components (schema, markers) can be used
without pulling in discovery and loading.
"""

__all__ = [
    "Plugin",
    "provides_service",
    "provides_command",
    "on_lifecycle",
    "overrides_template",
    "ConfigSchema",
    "ServiceDefinition",
    "ServiceCategory",
    "HealthCheck",
    "DatabaseOperations",
    "CommandArtifact",
    "LifecycleEvent",
    "LifecycleEventData",
    "PluginManifest",
    "PluginRegistry",
    "PluginDiscovery",
    "PluginLoader",
    "PluginLifecycleDispatcher",
    "PluginManager",
]


def __getattr__(name):
    if name in ("Plugin", "provides_service", "provides_command", "on_lifecycle", "overrides_template"):
        from dockyard.plugins import base
        return getattr(base, name)
    if name == "ConfigSchema":
        from dockyard.plugins.schema import ConfigSchema
        return ConfigSchema
    if name in (
        "ServiceDefinition",
        "ServiceCategory",
        "HealthCheck",
        "DatabaseOperations",
        "CommandArtifact",
        "LifecycleEvent",
        "LifecycleEventData",
    ):
        from dockyard.plugins import definitions
        return getattr(definitions, name)
    if name == "PluginManifest":
        from dockyard.plugins.manifest import PluginManifest
        return PluginManifest
    if name == "PluginRegistry":
        from dockyard.plugins.registry import PluginRegistry
        return PluginRegistry
    if name == "PluginDiscovery":
        from dockyard.plugins.discovery import PluginDiscovery
        return PluginDiscovery
    if name in ("PluginLoader", "PluginLifecycleDispatcher"):
        from dockyard.plugins import lifecycle
        return getattr(lifecycle, name)
    if name == "PluginManager":
        from dockyard.plugins.manager import PluginManager
        return PluginManager
    raise AttributeError(f"module 'dockyard.plugins' has no attribute {name!r}")
