"""Plugin manager - top-level orchestrator for the plugin system."""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

from dockyard.constants import LOCAL_PLUGINS_DIR_NAME, STATE_DIR_NAME
from dockyard.plugins.discovery import PluginDiscovery
from dockyard.plugins.lifecycle import PluginLifecycleDispatcher, PluginLoader
from dockyard.plugins.registry import LoadedPlugin, PluginRegistry
from dockyard.services.project_config import ProjectFile

logger = logging.getLogger(__name__)


class PluginManager:
    """Top-level plugin system orchestrator.

    Loading order is fixed: bundled plugins in table order, then the
    project's local plugins in their declared order. Later registrations
    override earlier services and templates of the same name.
    """

    def __init__(
        self,
        project_root: Path,
        project: ProjectFile,
        bundled: Optional[Sequence[type]] = None,
        registry: Optional[PluginRegistry] = None,
    ):
        self.project_root = project_root
        self.project = project
        self._bundled = bundled

        self.registry = registry or PluginRegistry()
        self.local_plugins_dir = project_root / STATE_DIR_NAME / LOCAL_PLUGINS_DIR_NAME
        self.discovery = PluginDiscovery(self.local_plugins_dir)
        self.loader = PluginLoader()
        self.dispatcher = PluginLifecycleDispatcher(self.registry)

    @property
    def bundled(self) -> Sequence[type]:
        if self._bundled is None:
            from plugins.bundled import BUNDLED_PLUGINS

            self._bundled = BUNDLED_PLUGINS
        return self._bundled

    def load_all(self) -> PluginRegistry:
        """Register bundled plugins, then discover, load and register local plugins.

        Raises:
            PluginError: a plugin failed to load, register or verify
            ValidationError: a plugin's configuration is invalid
        """
        for plugin_class in self.bundled:
            self._register(plugin_class(), "bundled")

        for local in self.discovery.discover_all(self.project.local_plugins):
            instance = self.loader.load(local)
            loaded = self._register(instance, "local")
            self.loader.verify_capabilities(local, loaded)

        logger.info(
            f"Plugin system initialized, {self.registry.count()} plugin(s), "
            f"{len(self.registry.catalog().services)} service(s)"
        )
        return self.registry

    def list_plugins(self) -> List[dict]:
        """List all plugins as dicts."""
        return [p.to_dict() for p in self.registry.all()]

    def get_plugin_info(self, name: str) -> dict:
        return self.registry.get(name).to_dict()

    def _register(self, plugin: Any, source: str) -> LoadedPlugin:
        name = getattr(plugin, "name", None)
        config = self.project.plugins.get(name) if isinstance(name, str) else None
        return self.registry.register(plugin, config=config, source=source)
