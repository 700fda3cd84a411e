"""Memcached bundled plugin."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class MemcachedPlugin(Plugin):
    name = "dockyard/memcached"
    version = "1.0.0"
    description = "Memcached cache service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        (
            schema.string("version", default="1.6-alpine")
            .label("Memcached version")
            .description("Docker image tag to use")
            .enum(["1.6-alpine", "alpine", "latest"])
            .integer("port", default=11211, min=1, max=65535)
            .label("Port")
            .description("Host port to expose Memcached on")
        )
        return schema

    @provides_service
    def memcached_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="memcached",
            template="memcached.yaml.j2",
            display_name="Memcached",
            description="High-performance distributed memory caching system",
            icon="🗃️",
            category=ServiceCategory.CACHE,
            ports=(self.config["port"],),
            internal_ports=(11211,),
            default_config=dict(self.config),
            health_check=HealthCheck(
                test=("CMD-SHELL", "echo version | nc -w 1 localhost 11211 | grep -q VERSION"),
            ),
            config_schema=self.schema,
        )
