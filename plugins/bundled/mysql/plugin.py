"""MySQL bundled plugin."""

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
        env.get("MYSQL_USER", "root"),
        f"-p{env.get('MYSQL_PASSWORD', '')}",
        env.get("MYSQL_DATABASE", "mysql"),
    ]


class MysqlPlugin(Plugin):
    name = "dockyard/mysql"
    version = "1.0.0"
    description = "MySQL database service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        (
            schema.string("version", default="8.0")
            .label("MySQL version")
            .description("Docker image tag to use")
            .enum(["5.7", "8.0", "8.4", "9.1", "latest"])
            .integer("port", default=3306, min=1, max=65535)
            .label("Port")
            .description("Host port to expose MySQL on")
            .string("database", default="dockyard")
            .label("Database name")
            .string("user", default="dockyard")
            .label("Database user")
            .string("password", default="dockyard")
            .label("Database password")
            .secret()
            .string("root_password", default="root")
            .label("Root password")
            .description("Password for the MySQL root user")
            .secret()
        )
        return schema

    @provides_service
    def mysql_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="mysql",
            template="mysql.yaml.j2",
            display_name="MySQL",
            description="Popular open-source relational database",
            icon="🐬",
            category=ServiceCategory.DATABASE,
            ports=(self.config["port"],),
            internal_ports=(3306,),
            default_config={
                **self.config,
                "environment": {
                    "MYSQL_DATABASE": self.config["database"],
                    "MYSQL_USER": self.config["user"],
                    "MYSQL_PASSWORD": self.config["password"],
                    "MYSQL_ROOT_PASSWORD": self.config["root_password"],
                },
            },
            health_check=HealthCheck(test=("CMD", "mysqladmin", "ping", "-h", "localhost")),
            database_operations=DatabaseOperations(
                dump=lambda config: _client("mysqldump", config),
                restore=lambda config: _client("mysql", config),
                shell=lambda config: _client("mysql", config),
            ),
            config_schema=self.schema,
        )
