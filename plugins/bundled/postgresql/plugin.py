"""PostgreSQL bundled plugin."""

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


def _psql(client: str, config: ServiceConfig) -> List[str]:
    env = config.environment
    return [client, "-U", env.get("POSTGRES_USER", "postgres"), env.get("POSTGRES_DB", "postgres")]


class PostgresqlPlugin(Plugin):
    name = "dockyard/postgresql"
    version = "1.0.0"
    description = "PostgreSQL database service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        (
            schema.string("version", default="16")
            .label("PostgreSQL version")
            .description("PostgreSQL version to use")
            .enum(["13", "14", "15", "16", "17", "latest"])
            .integer("port", default=5432, min=1, max=65535)
            .label("Port")
            .description("Host port to expose PostgreSQL on")
            .string("database", default="dockyard")
            .label("Database name")
            .description("Name of the database to create")
            .string("user", default="dockyard")
            .label("Database user")
            .string("password", default="dockyard")
            .label("Database password")
            .secret()
        )
        return schema

    @provides_service
    def postgresql_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="postgresql",
            template="postgresql.yaml.j2",
            display_name="PostgreSQL",
            description="Advanced open-source relational database",
            icon="🐘",
            category=ServiceCategory.DATABASE,
            ports=(self.config["port"],),
            internal_ports=(5432,),
            default_config={
                **self.config,
                "environment": {
                    "POSTGRES_DB": self.config["database"],
                    "POSTGRES_USER": self.config["user"],
                    "POSTGRES_PASSWORD": self.config["password"],
                },
            },
            health_check=HealthCheck(test=("CMD-SHELL", "pg_isready -U $$POSTGRES_USER")),
            database_operations=DatabaseOperations(
                dump=lambda config: _psql("pg_dump", config),
                restore=lambda config: _psql("psql", config),
                shell=lambda config: _psql("psql", config),
            ),
            config_schema=self.schema,
        )
