"""Dozzle bundled plugin."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class DozzlePlugin(Plugin):
    name = "dockyard/dozzle"
    version = "1.0.0"
    description = "Dozzle container log viewer"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        schema.string("version", default="latest").label("Dozzle version")
        schema.integer("port", default=8080, min=1, max=65535).label("Web UI port")
        return schema

    @provides_service
    def dozzle_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="dozzle",
            template="dozzle.yaml.j2",
            display_name="Dozzle",
            description="Real-time Docker container log viewer",
            icon="📋",
            category=ServiceCategory.UTILITY,
            ports=(self.config["port"],),
            internal_ports=(8080,),
            default_config=dict(self.config),
            health_check=HealthCheck(test=("CMD", "/dozzle", "healthcheck"), interval="3s", timeout="30s"),
            config_schema=self.schema,
            http_port=8080,
        )
