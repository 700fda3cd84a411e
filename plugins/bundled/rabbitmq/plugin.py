"""RabbitMQ bundled plugin."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class RabbitmqPlugin(Plugin):
    name = "dockyard/rabbitmq"
    version = "1.0.0"
    description = "RabbitMQ message broker with management UI"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        (
            schema.string("version", default="3-management")
            .label("RabbitMQ version")
            .enum(["3-management", "3-management-alpine", "4.0-management", "latest"])
            .integer("port", default=5672, min=1, max=65535)
            .label("AMQP port")
            .integer("management_port", default=15672, min=1, max=65535)
            .label("Management UI port")
            .string("user", default="dockyard")
            .label("Default user")
            .string("password", default="dockyard")
            .label("Default password")
            .secret()
        )
        return schema

    @provides_service
    def rabbitmq_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="rabbitmq",
            template="rabbitmq.yaml.j2",
            display_name="RabbitMQ",
            description="Open-source message broker with management UI",
            icon="🐰",
            category=ServiceCategory.QUEUE,
            ports=(self.config["port"], self.config["management_port"]),
            internal_ports=(5672, 15672),
            default_config={
                **self.config,
                "environment": {
                    "RABBITMQ_DEFAULT_USER": self.config["user"],
                    "RABBITMQ_DEFAULT_PASS": self.config["password"],
                },
            },
            health_check=HealthCheck(test=("CMD-SHELL", "rabbitmq-diagnostics -q ping")),
            config_schema=self.schema,
            http_port=15672,
        )
