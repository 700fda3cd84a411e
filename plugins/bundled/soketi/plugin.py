"""Soketi bundled plugin, a Pusher-compatible WebSocket server."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class SoketiPlugin(Plugin):
    name = "dockyard/soketi"
    version = "1.0.0"
    description = "Soketi WebSocket server"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        (
            schema.string("version", default="latest-16-alpine")
            .label("Soketi version")
            .integer("port", default=6001, min=1, max=65535)
            .label("WebSocket port")
            .integer("metrics_port", default=9601, min=1, max=65535)
            .label("Metrics port")
            .string("app_id", default="app-id")
            .string("app_key", default="app-key")
            .string("app_secret", default="app-secret")
            .secret()
        )
        return schema

    @provides_service
    def soketi_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="soketi",
            template="soketi.yaml.j2",
            display_name="Soketi",
            description="Pusher-compatible WebSocket server",
            icon="🔌",
            category=ServiceCategory.UTILITY,
            ports=(self.config["port"], self.config["metrics_port"]),
            internal_ports=(6001, 9601),
            default_config={
                **self.config,
                "environment": {
                    "SOKETI_DEFAULT_APP_ID": self.config["app_id"],
                    "SOKETI_DEFAULT_APP_KEY": self.config["app_key"],
                    "SOKETI_DEFAULT_APP_SECRET": self.config["app_secret"],
                    "SOKETI_METRICS_ENABLED": "1",
                    "SOKETI_METRICS_SERVER_PORT": "9601",
                },
            },
            health_check=HealthCheck(test=("CMD", "wget", "--spider", "-q", "http://localhost:6001")),
            config_schema=self.schema,
            http_port=6001,
        )
