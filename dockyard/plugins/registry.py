"""Plugin registry - tracks registered plugins and the catalogs they contribute.

Merge policy for the service and template-override catalogs: a later
registration providing the same key replaces the earlier one. Bundled
plugins are registered first, so project plugins can replace bundled
services and templates. Every replacement is logged.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dockyard.errors import DuplicatePluginError, PluginNotFoundError, UnknownServiceError
from dockyard.plugins.base import identity_of
from dockyard.plugins.definitions import (
    CommandArtifact,
    LifecycleHandler,
    PluginIdentity,
    ServiceDefinition,
    TemplateOverride,
)
from dockyard.plugins.extractors import (
    CommandExtractor,
    LifecycleExtractor,
    ServiceExtractor,
    TemplateExtractor,
)

logger = logging.getLogger(__name__)


@dataclass
class LoadedPlugin:
    """A registered plugin and what it contributed."""

    identity: PluginIdentity
    instance: Any = field(repr=False)
    source: str  # "bundled" | "local" | "unknown"
    services: Tuple[ServiceDefinition, ...] = ()
    commands: Tuple[CommandArtifact, ...] = ()
    lifecycle: Tuple[LifecycleHandler, ...] = ()
    template_overrides: Tuple[TemplateOverride, ...] = ()

    @property
    def name(self) -> str:
        return self.identity.name

    def to_dict(self) -> dict:
        schema = getattr(self.instance, "config_schema", None)
        schema = schema() if callable(schema) else None
        config = getattr(self.instance, "config", {}) or {}
        return {
            "name": self.identity.name,
            "version": self.identity.version,
            "description": self.identity.description,
            "requires": list(self.identity.requires),
            "source": self.source,
            "services": [s.name for s in self.services],
            "commands": [c.name for c in self.commands],
            "lifecycle": [h.event for h in self.lifecycle],
            "templates": [o.original for o in self.template_overrides],
            "config": schema.redact(config) if schema is not None else dict(config),
            "config_schema": schema.to_dict() if schema is not None else None,
        }


@dataclass(frozen=True)
class Catalog:
    """Read-only snapshot of the registry's catalogs."""

    services: Mapping[str, ServiceDefinition]
    commands: Tuple[CommandArtifact, ...]
    lifecycle: Tuple[LifecycleHandler, ...]
    template_overrides: Mapping[str, str]

    def handlers_for(self, event: str) -> Tuple[LifecycleHandler, ...]:
        return tuple(h for h in self.lifecycle if h.event == event)


class PluginRegistry:
    """Central registry for all plugins."""

    def __init__(self):
        self._plugins: Dict[str, LoadedPlugin] = {}
        self._services: Dict[str, ServiceDefinition] = {}
        self._service_owners: Dict[str, str] = {}
        self._commands: List[CommandArtifact] = []
        self._lifecycle: List[LifecycleHandler] = []
        self._template_overrides: Dict[str, str] = {}

        self._service_extractor = ServiceExtractor()
        self._command_extractor = CommandExtractor()
        self._lifecycle_extractor = LifecycleExtractor()
        self._template_extractor = TemplateExtractor()

    def register(
        self,
        plugin: Any,
        config: Optional[Mapping[str, Any]] = None,
        source: str = "unknown",
    ) -> LoadedPlugin:
        """Register a plugin and merge its artifacts into the catalogs.

        Args:
            plugin: Plugin instance
            config: User configuration for the plugin, validated by its schema
            source: Where the plugin came from

        Returns:
            The LoadedPlugin record

        Raises:
            DuplicatePluginError: a plugin with the same name is registered
            ValidationError: config does not satisfy the plugin's schema
            ExtractionError: a capability method failed
        """
        identity = identity_of(plugin)
        if identity.name in self._plugins:
            raise DuplicatePluginError(identity.name)

        if config is not None:
            configure = getattr(plugin, "configure", None)
            if callable(configure):
                configure(config)
            elif config:
                logger.warning(f"Plugin '{identity.name}' takes no configuration, ignoring {sorted(config)}")

        # Extract everything before merging so a failing plugin leaves the catalogs untouched
        loaded = LoadedPlugin(
            identity=identity,
            instance=plugin,
            source=source,
            services=tuple(self._service_extractor.extract(plugin)),
            commands=tuple(self._command_extractor.extract(plugin)),
            lifecycle=tuple(self._lifecycle_extractor.extract(plugin)),
            template_overrides=tuple(self._template_extractor.extract(plugin)),
        )

        for service in loaded.services:
            previous = self._service_owners.get(service.name)
            if previous is not None:
                logger.warning(f"Service '{service.name}' from '{previous}' overridden by '{identity.name}'")
            self._services[service.name] = service
            self._service_owners[service.name] = identity.name

        self._commands.extend(loaded.commands)

        # sorted() is stable, ties keep registration order
        self._lifecycle = sorted(self._lifecycle + list(loaded.lifecycle), key=lambda h: -h.priority)

        for override in loaded.template_overrides:
            if override.original in self._template_overrides:
                logger.warning(
                    f"Template '{override.original}' override replaced by '{identity.name}': "
                    f"{override.replacement}"
                )
            self._template_overrides[override.original] = override.replacement

        self._plugins[identity.name] = loaded
        logger.info(
            f"Registered plugin: {identity.name} ({source}), "
            f"{len(loaded.services)} service(s), {len(loaded.commands)} command(s)"
        )
        return loaded

    def get(self, name: str) -> LoadedPlugin:
        """Get a plugin by name."""
        if name not in self._plugins:
            raise PluginNotFoundError(name)
        return self._plugins[name]

    def has(self, name: str) -> bool:
        """Check if a plugin is registered."""
        return name in self._plugins

    def all(self) -> List[LoadedPlugin]:
        """Get all registered plugins, in registration order."""
        return list(self._plugins.values())

    def count(self) -> int:
        """Get total number of registered plugins."""
        return len(self._plugins)

    def service(self, name: str) -> ServiceDefinition:
        if name not in self._services:
            raise UnknownServiceError(name, self._services)
        return self._services[name]

    def service_owner(self, name: str) -> str:
        """Name of the plugin whose definition of the service is in the catalog."""
        if name not in self._service_owners:
            raise UnknownServiceError(name, self._services)
        return self._service_owners[name]

    def catalog(self) -> Catalog:
        return Catalog(
            services=MappingProxyType(dict(self._services)),
            commands=tuple(self._commands),
            lifecycle=tuple(self._lifecycle),
            template_overrides=MappingProxyType(dict(self._template_overrides)),
        )

    def template_search_paths(self) -> List[Path]:
        """Existing ``templates/`` directories of registered plugins, in registration order."""
        paths = []
        for loaded in self._plugins.values():
            templates_dir = getattr(loaded.instance, "templates_dir", None)
            if not callable(templates_dir):
                continue
            path = Path(templates_dir())
            if path.is_dir():
                paths.append(path)
        return paths
