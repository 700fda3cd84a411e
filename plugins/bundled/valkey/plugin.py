"""Valkey bundled plugin."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class ValkeyPlugin(Plugin):
    name = "dockyard/valkey"
    version = "1.0.0"
    description = "Valkey cache service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        schema.string("version", default="8-alpine").label("Valkey version")
        schema.integer("port", default=6379, min=1, max=65535).label("Port")
        return schema

    @provides_service
    def valkey_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="valkey",
            template="valkey.yaml.j2",
            display_name="Valkey",
            description="Redis-compatible in-memory data store",
            icon="🔑",
            category=ServiceCategory.CACHE,
            ports=(self.config["port"],),
            internal_ports=(6379,),
            default_config=dict(self.config),
            health_check=HealthCheck(test=("CMD", "valkey-cli", "ping")),
            config_schema=self.schema,
        )
