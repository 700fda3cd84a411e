"""Elasticsearch bundled plugin, single node."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class ElasticsearchPlugin(Plugin):
    name = "dockyard/elasticsearch"
    version = "1.0.0"
    description = "Elasticsearch search engine service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        schema.string("version", default="8.12.0").label("Elasticsearch version")
        schema.integer("port", default=9200, min=1, max=65535).label("HTTP port")
        schema.boolean("security_enabled", default=False).label("Enable X-Pack security")
        schema.string("heap_size", default="512m").description("JVM heap size")
        return schema

    @provides_service
    def elasticsearch_service(self) -> ServiceDefinition:
        # Transport port 9300 is only used between nodes
        heap = self.config["heap_size"]
        return ServiceDefinition(
            name="elasticsearch",
            template="elasticsearch.yaml.j2",
            display_name="Elasticsearch",
            description="Distributed search and analytics engine",
            icon="🔍",
            category=ServiceCategory.SEARCH,
            ports=(self.config["port"],),
            internal_ports=(9200,),
            default_config={
                **self.config,
                "environment": {
                    "discovery.type": "single-node",
                    "xpack.security.enabled": "true" if self.config["security_enabled"] else "false",
                    "ES_JAVA_OPTS": f"-Xms{heap} -Xmx{heap}",
                },
            },
            health_check=HealthCheck(test=("CMD-SHELL", "curl -f http://localhost:9200/_cluster/health || exit 1")),
            config_schema=self.schema,
            http_port=9200,
        )
