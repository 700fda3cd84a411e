"""Mercure bundled plugin."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class MercurePlugin(Plugin):
    name = "dockyard/mercure"
    version = "1.0.0"
    description = "Mercure real-time updates hub"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        schema.string("version", default="latest").label("Mercure version")
        schema.integer("port", default=3000, min=1, max=65535).label("Hub port")
        (
            schema.string("jwt_secret", default="!ChangeThisMercureHubJWTSecretKey!")
            .label("Publisher and subscriber JWT key")
            .secret()
        )
        return schema

    @provides_service
    def mercure_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="mercure",
            template="mercure.yaml.j2",
            display_name="Mercure",
            description="Real-time updates hub (server-sent events)",
            icon="⚡",
            category=ServiceCategory.UTILITY,
            ports=(self.config["port"],),
            internal_ports=(3000,),
            default_config={
                **self.config,
                "environment": {
                    "SERVER_NAME": ":3000",
                    "MERCURE_PUBLISHER_JWT_KEY": self.config["jwt_secret"],
                    "MERCURE_SUBSCRIBER_JWT_KEY": self.config["jwt_secret"],
                    "MERCURE_EXTRA_DIRECTIVES": "cors_origins *\nanonymous",
                },
            },
            health_check=HealthCheck(
                test=("CMD", "wget", "--spider", "-q", "http://localhost:3000/.well-known/mercure"),
            ),
            config_schema=self.schema,
            http_port=3000,
        )
