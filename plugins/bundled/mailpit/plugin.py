"""Mailpit bundled plugin."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class MailpitPlugin(Plugin):
    name = "dockyard/mailpit"
    version = "1.0.0"
    description = "Mailpit email testing tool"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        schema.string("version", default="latest").label("Mailpit version")
        schema.integer("port", default=8025, min=1, max=65535).label("Web UI port")
        schema.integer("smtp_port", default=1025, min=1, max=65535).label("SMTP port")
        return schema

    @provides_service
    def mailpit_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="mailpit",
            template="mailpit.yaml.j2",
            display_name="Mailpit",
            description="Email testing tool with web UI",
            icon="📧",
            category=ServiceCategory.UTILITY,
            ports=(self.config["port"], self.config["smtp_port"]),
            internal_ports=(8025, 1025),
            default_config=dict(self.config),
            health_check=HealthCheck(test=("CMD", "wget", "--spider", "-q", "http://localhost:8025/livez")),
            config_schema=self.schema,
            http_port=8025,
        )
