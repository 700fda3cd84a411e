"""Redis bundled plugin."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class RedisPlugin(Plugin):
    name = "dockyard/redis"
    version = "1.0.0"
    description = "Redis cache service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        schema.string("version", default="7-alpine").label("Redis version")
        schema.integer("port", default=6379, min=1, max=65535).label("Port")
        return schema

    @provides_service
    def redis_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="redis",
            template="redis.yaml.j2",
            display_name="Redis",
            description="In-memory data store for caching and sessions",
            icon="🧵",
            category=ServiceCategory.CACHE,
            ports=(self.config["port"],),
            internal_ports=(6379,),
            default_config=dict(self.config),
            health_check=HealthCheck(test=("CMD", "redis-cli", "ping")),
            config_schema=self.schema,
        )
