"""ClickHouse local plugin used by the loader tests."""

import shlex

from dockyard.plugins.base import Plugin, on_lifecycle, provides_command, provides_service
from dockyard.plugins.definitions import (
    CommandArtifact,
    HealthCheck,
    LifecycleEvent,
    ServiceCategory,
    ServiceDefinition,
)
from dockyard.plugins.schema import ConfigSchema


class ClickHousePlugin(Plugin):
    name = "acme/clickhouse"
    version = "1.0.0"
    description = "ClickHouse OLAP database service"

    def build_schema(self):
        schema = ConfigSchema()
        schema.string("version", default="24.8")
        schema.string("user", default="default")
        schema.string("password", default=None, nullable=True).secret()
        schema.integer("http_port", default=8123, min=1, max=65535)
        schema.integer("native_port", default=9000, min=1, max=65535)
        schema.boolean("enable_backups", default=True)
        return schema

    @provides_service
    def clickhouse_service(self):
        return ServiceDefinition(
            name="clickhouse",
            template="clickhouse.yaml.j2",
            display_name="ClickHouse",
            description="Fast open-source column-oriented OLAP database",
            icon="🏠",
            category=ServiceCategory.DATABASE,
            ports=(self.config["http_port"], self.config["native_port"]),
            internal_ports=(8123, 9000),
            default_config=dict(self.config),
            health_check=HealthCheck(
                test=("CMD", "wget", "--no-verbose", "--tries=1", "--spider", "http://localhost:8123/ping"),
                retries=3,
            ),
            config_schema=self.schema,
        )

    @provides_command
    def query_command(self):
        return CommandArtifact(
            name="clickhouse-query",
            handler=self.run_query,
            help="Print the clickhouse-client command for a query",
            configure=lambda parser: parser.add_argument("query"),
        )

    def run_query(self, args):
        print(shlex.join(["docker", "compose", "exec", "clickhouse", "clickhouse-client", "--query", args.query]))
        return 0

    @on_lifecycle(LifecycleEvent.AFTER_START, priority=10)
    def announce(self, data):
        self.get_logger().info(f"ClickHouse is ready on port {self.config['http_port']}")

    @on_lifecycle(LifecycleEvent.BEFORE_DESTROY, priority=100)
    def warn_about_data(self, data):
        if self.config["enable_backups"]:
            self.get_logger().warning("ClickHouse data will be deleted")
