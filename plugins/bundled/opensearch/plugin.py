"""OpenSearch bundled plugin, single node without the security plugin."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class OpensearchPlugin(Plugin):
    name = "dockyard/opensearch"
    version = "1.0.0"
    description = "OpenSearch search engine service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        schema.string("version", default="2").label("OpenSearch version")
        schema.integer("port", default=9200, min=1, max=65535).label("HTTP port")
        schema.integer("performance_port", default=9600, min=1, max=65535).label("Performance analyzer port")
        return schema

    @provides_service
    def opensearch_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="opensearch",
            template="opensearch.yaml.j2",
            display_name="OpenSearch",
            description="Open-source search and analytics suite",
            icon="🔎",
            category=ServiceCategory.SEARCH,
            ports=(self.config["port"], self.config["performance_port"]),
            internal_ports=(9200, 9600),
            default_config={
                **self.config,
                "environment": {
                    "discovery.type": "single-node",
                    "DISABLE_SECURITY_PLUGIN": "true",
                    "OPENSEARCH_JAVA_OPTS": "-Xms512m -Xmx512m",
                },
            },
            health_check=HealthCheck(
                test=("CMD-SHELL", 'curl -s http://localhost:9200/_cluster/health | grep -q -E "green|yellow"'),
            ),
            config_schema=self.schema,
        )
