"""Artifacts a plugin can contribute: services, commands, lifecycle hooks, template overrides."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple

from dockyard.constants import MAX_PORT, MIN_PORT
from dockyard.errors import InvalidServiceDefinitionError
from dockyard.plugins.schema import ConfigSchema

if TYPE_CHECKING:
    import argparse

    from dockyard.services.configuration import Configuration, ServiceConfig


class ServiceCategory(str, Enum):
    """Closed set of service categories."""

    DATABASE = "database"
    CACHE = "cache"
    QUEUE = "queue"
    SEARCH = "search"
    STORAGE = "storage"
    UTILITY = "utility"
    MISC = "misc"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class PluginIdentity:
    name: str
    version: str = "1.0.0"
    description: str = ""
    requires: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HealthCheck:
    """Compose health check block."""

    test: Tuple[str, ...]
    interval: str = "10s"
    timeout: str = "5s"
    retries: int = 5

    def __post_init__(self):
        object.__setattr__(self, "test", tuple(self.test))

    def to_compose(self) -> Dict[str, Any]:
        return {
            "test": list(self.test),
            "interval": self.interval,
            "timeout": self.timeout,
            "retries": self.retries,
        }


CommandBuilder = Callable[["ServiceConfig"], List[str]]


@dataclass(frozen=True)
class DatabaseOperations:
    """Client command vectors of a database service, built from its resolved config."""

    dump: CommandBuilder
    restore: CommandBuilder
    shell: CommandBuilder

    def dump_command(self, config: ServiceConfig) -> List[str]:
        return list(self.dump(config))

    def restore_command(self, config: ServiceConfig) -> List[str]:
        return list(self.restore(config))

    def shell_command(self, config: ServiceConfig) -> List[str]:
        return list(self.shell(config))


@dataclass(frozen=True)
class ServiceDefinition:
    """Canonical description of one composable service.

    ``ports[i]`` is the requested host port for ``internal_ports[i]``. A
    service without network exposure (a file-based database) has both empty.
    The service is routed by the reverse proxy when ``http_port`` is set.
    """

    name: str
    template: str
    display_name: Optional[str] = None
    description: str = "Plugin-provided service"
    icon: str = "🔌"
    category: ServiceCategory = ServiceCategory.MISC
    ports: Tuple[int, ...] = ()
    internal_ports: Tuple[int, ...] = ()
    default_config: Mapping[str, Any] = field(default_factory=dict)
    health_check: Optional[HealthCheck] = None
    database_operations: Optional[DatabaseOperations] = None
    config_schema: Optional[ConfigSchema] = None
    http_port: Optional[int] = None
    dependencies: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.name:
            raise InvalidServiceDefinitionError("<unnamed>", "name must not be empty")
        if not self.template:
            raise InvalidServiceDefinitionError(self.name, "template must not be empty")

        ports = tuple(self.ports)
        internal_ports = tuple(self.internal_ports)
        if len(ports) != len(internal_ports):
            raise InvalidServiceDefinitionError(
                self.name,
                f"{len(ports)} host port(s) but {len(internal_ports)} internal port(s); "
                f"they must be paired",
            )
        candidates = list(ports) + list(internal_ports)
        if self.http_port is not None:
            candidates.append(self.http_port)
        for port in candidates:
            if isinstance(port, bool) or not isinstance(port, int) or not MIN_PORT <= port <= MAX_PORT:
                raise InvalidServiceDefinitionError(self.name, f"port {port!r} is not in {MIN_PORT}-{MAX_PORT}")

        object.__setattr__(self, "ports", ports)
        object.__setattr__(self, "internal_ports", internal_ports)
        object.__setattr__(self, "category", ServiceCategory(self.category))
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        object.__setattr__(self, "default_config", MappingProxyType(copy.deepcopy(dict(self.default_config))))
        if self.display_name is None:
            object.__setattr__(self, "display_name", self.name.replace("-", " ").title())

    @property
    def environment(self) -> Dict[str, str]:
        return dict(self.default_config.get("environment", {}))

    @property
    def http_exposed(self) -> bool:
        return self.http_port is not None

    @property
    def is_database(self) -> bool:
        return self.database_operations is not None


@dataclass(frozen=True)
class CommandArtifact:
    """A CLI sub-command contributed by a plugin."""

    name: str
    handler: Callable[[argparse.Namespace], Optional[int]]
    help: str = ""
    configure: Optional[Callable[[argparse.ArgumentParser], None]] = None


class LifecycleEvent(str, Enum):
    """Lifecycle events plugins can hook into."""

    BEFORE_INIT = "before:init"
    AFTER_INIT = "after:init"
    BEFORE_START = "before:start"
    AFTER_START = "after:start"
    BEFORE_STOP = "before:stop"
    AFTER_STOP = "after:stop"
    BEFORE_REBUILD = "before:rebuild"
    AFTER_REBUILD = "after:rebuild"
    BEFORE_DESTROY = "before:destroy"
    AFTER_DESTROY = "after:destroy"


@dataclass(frozen=True)
class LifecycleEventData:
    event: str
    project_name: str
    project_root: Path
    configuration: Optional[Configuration] = None


@dataclass(frozen=True)
class LifecycleHandler:
    event: str
    priority: int
    handler: Callable[[LifecycleEventData], None]
    plugin_name: str = ""


@dataclass(frozen=True)
class TemplateOverride:
    """Replace the template referenced as ``original`` with the file at ``replacement``."""

    original: str
    replacement: str
