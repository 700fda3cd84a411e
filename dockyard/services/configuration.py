"""Configuration - the resolved per-project selection of services.

The builder turns a project file and the plugin catalog into a
Configuration: selected services in order, environment resolved, host
ports allocated. A Configuration is never patched; re-run the builder.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dockyard.constants import LOCAL_DOMAIN_SUFFIX, PROXY_SERVICE_NAME
from dockyard.errors import DuplicatePortError, DuplicateServiceError, UnknownServiceError
from dockyard.plugins.definitions import ServiceCategory
from dockyard.plugins.registry import Catalog
from dockyard.services.port_allocator import PortAllocation, PortAllocator
from dockyard.services.project_config import ProjectFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProxyConfig:
    """Project-level reverse proxy flags."""

    enabled: bool = True
    domain_prefix: Optional[str] = None
    domain_suffix: str = LOCAL_DOMAIN_SUFFIX
    tls: bool = True
    cert_resolver: Optional[str] = None
    dashboard: bool = True

    def domain(self, service: str, project_name: Optional[str] = None) -> str:
        """Hostname of a proxied service. The prefix defaults to the project name."""
        prefix = self.domain_prefix or project_name
        return ".".join(part for part in (service, prefix, self.domain_suffix) if part)

    @classmethod
    def from_project(cls, project: ProjectFile) -> "ProxyConfig":
        proxy = project.proxy
        return cls(
            enabled=proxy.enabled,
            domain_prefix=project.domain_prefix,
            domain_suffix=proxy.domain_suffix,
            tls=proxy.tls,
            cert_resolver=proxy.cert_resolver,
            dashboard=proxy.dashboard,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "domain_prefix": self.domain_prefix,
            "domain_suffix": self.domain_suffix,
            "tls": self.tls,
            "cert_resolver": self.cert_resolver,
            "dashboard": self.dashboard,
        }


@dataclass(frozen=True)
class ServiceConfig:
    """One selected service with its environment and allocated host ports."""

    name: str
    type: ServiceCategory
    environment: Mapping[str, str] = field(default_factory=dict)
    ports: Tuple[int, ...] = ()
    config: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "type", ServiceCategory(self.type))
        object.__setattr__(self, "environment", MappingProxyType(dict(self.environment)))
        object.__setattr__(self, "ports", tuple(self.ports))
        object.__setattr__(self, "config", MappingProxyType(dict(self.config)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "environment": dict(self.environment),
            "ports": list(self.ports),
            "config": _plain(self.config),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ServiceConfig":
        return cls(
            name=data["name"],
            type=ServiceCategory(data.get("type", ServiceCategory.MISC.value)),
            environment=data.get("environment", {}),
            ports=tuple(data.get("ports", ())),
            config=data.get("config", {}),
        )


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class Configuration:
    """Resolved project state. Service names and host ports are unique."""

    project_name: str
    services: Tuple[ServiceConfig, ...] = ()
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    allocation: PortAllocation = field(default_factory=PortAllocation)

    def __post_init__(self):
        object.__setattr__(self, "services", tuple(self.services))

        seen = set()
        for service in self.services:
            if service.name in seen:
                raise DuplicateServiceError(service.name)
            seen.add(service.name)

        owners: Dict[int, List[str]] = {}
        for service in self.services:
            for port in service.ports:
                owners.setdefault(port, []).append(service.name)
        for port, services in owners.items():
            if len(services) > 1:
                raise DuplicatePortError(port, services)

    def __iter__(self):
        return iter(self.services)

    def __len__(self) -> int:
        return len(self.services)

    def __contains__(self, name: object) -> bool:
        return any(s.name == name for s in self.services)

    def service(self, name: str) -> ServiceConfig:
        for service in self.services:
            if service.name == name:
                return service
        raise UnknownServiceError(name, self.names())

    def names(self) -> List[str]:
        return [s.name for s in self.services]

    def host_ports(self) -> List[int]:
        return [port for s in self.services for port in s.ports]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": self.project_name,
            "proxy": self.proxy.to_dict(),
            "services": [s.to_dict() for s in self.services],
            "allocation": self.allocation.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Configuration":
        return cls(
            project_name=data["project"],
            services=tuple(ServiceConfig.from_dict(s) for s in data.get("services", ())),
            proxy=ProxyConfig(**data.get("proxy", {})),
            allocation=PortAllocation.from_dict(data.get("allocation", ())),
        )


class ConfigurationBuilder:
    """Builds a Configuration from a project file against the plugin catalog."""

    def __init__(self, catalog: Catalog, allocator: Optional[PortAllocator] = None):
        self.catalog = catalog
        self.allocator = allocator or PortAllocator()

    def selected_services(self, project: ProjectFile) -> List[str]:
        """Selected service names in manifest order. The proxy comes first when enabled."""
        names = list(project.services)
        if project.proxy.enabled:
            names = [PROXY_SERVICE_NAME] + [n for n in names if n != PROXY_SERVICE_NAME]
        return names

    def build(self, project: ProjectFile) -> Configuration:
        """Resolve, validate and allocate the project's selection.

        Raises:
            UnknownServiceError: a selected service is not in the catalog
            PortAllocationError: host ports could not be allocated
        """
        allocation = PortAllocation()
        services = []

        for name in self.selected_services(project):
            definition = self.catalog.services.get(name)
            if definition is None:
                raise UnknownServiceError(name, self.catalog.services)

            selection = project.services.get(name)
            environment = definition.environment
            if selection is not None:
                environment.update(selection.environment)

            allocation = self.allocator.allocate(name, definition.ports, allocation)
            services.append(
                ServiceConfig(
                    name=name,
                    type=definition.category,
                    environment=environment,
                    ports=allocation.ports_for(name),
                    config=definition.default_config,
                )
            )
            logger.debug(f"Resolved service {name}: ports {list(allocation.ports_for(name))}")

        configuration = Configuration(
            project_name=project.project,
            services=tuple(services),
            proxy=ProxyConfig.from_project(project),
            allocation=allocation,
        )
        logger.info(f"Built configuration for {project.project}: {', '.join(configuration.names()) or 'no services'}")
        return configuration
