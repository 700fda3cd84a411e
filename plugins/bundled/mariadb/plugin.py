"""MariaDB bundled plugin."""

from typing import List

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import (
    DatabaseOperations,
    HealthCheck,
    ServiceCategory,
    ServiceDefinition,
)
from dockyard.plugins.schema import ConfigSchema
from dockyard.services.configuration import ServiceConfig


def _client(binary: str, config: ServiceConfig) -> List[str]:
    env = config.environment
    return [
        binary,
        "-u",
        env.get("MARIADB_USER", "root"),
        f"-p{env.get('MARIADB_PASSWORD', '')}",
        env.get("MARIADB_DATABASE", "mysql"),
    ]


class MariadbPlugin(Plugin):
    name = "dockyard/mariadb"
    version = "1.0.0"
    description = "MariaDB database service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        schema.string("version", default="11").label("MariaDB version")
        schema.integer("port", default=3306, min=1, max=65535).label("Port")
        schema.string("database", default="dockyard")
        schema.string("user", default="dockyard")
        schema.string("password", default="dockyard").secret()
        schema.string("root_password", default="root").secret()
        return schema

    @provides_service
    def mariadb_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="mariadb",
            template="mariadb.yaml.j2",
            display_name="MariaDB",
            description="Community-developed MySQL fork",
            icon="🦭",
            category=ServiceCategory.DATABASE,
            ports=(self.config["port"],),
            internal_ports=(3306,),
            default_config={
                **self.config,
                "environment": {
                    "MARIADB_DATABASE": self.config["database"],
                    "MARIADB_USER": self.config["user"],
                    "MARIADB_PASSWORD": self.config["password"],
                    "MARIADB_ROOT_PASSWORD": self.config["root_password"],
                },
            },
            health_check=HealthCheck(test=("CMD-SHELL", "healthcheck.sh --connect --innodb_initialized")),
            database_operations=DatabaseOperations(
                dump=lambda config: _client("mariadb-dump", config),
                restore=lambda config: _client("mariadb", config),
                shell=lambda config: _client("mariadb", config),
            ),
            config_schema=self.schema,
        )
