"""MinIO bundled plugin."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class MinioPlugin(Plugin):
    name = "dockyard/minio"
    version = "1.0.0"
    description = "MinIO S3-compatible object storage"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        (
            schema.string("version", default="RELEASE.2024-11-07T00-52-20Z")
            .label("MinIO version")
            .enum(["RELEASE.2024-11-07T00-52-20Z", "latest"])
            .integer("port", default=9000, min=1, max=65535)
            .label("API port")
            .integer("console_port", default=9001, min=1, max=65535)
            .label("Console port")
            .string("root_user", default="minioadmin")
            .label("Root user")
            .string("root_password", default="minioadmin")
            .label("Root password")
            .secret()
        )
        return schema

    @provides_service
    def minio_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="minio",
            template="minio.yaml.j2",
            display_name="MinIO",
            description="S3-compatible object storage",
            icon="🗄️",
            category=ServiceCategory.STORAGE,
            ports=(self.config["port"], self.config["console_port"]),
            internal_ports=(9000, 9001),
            default_config={
                **self.config,
                "environment": {
                    "MINIO_ROOT_USER": self.config["root_user"],
                    "MINIO_ROOT_PASSWORD": self.config["root_password"],
                },
            },
            health_check=HealthCheck(test=("CMD", "curl", "-f", "http://localhost:9000/minio/health/live")),
            config_schema=self.schema,
            http_port=9001,
        )
