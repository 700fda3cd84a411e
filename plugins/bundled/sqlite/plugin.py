"""SQLite bundled plugin.

SQLite is a file in the project tree: it has no container and no ports, so
its template renders nothing. It still provides database operations, run
on the host.
"""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import DatabaseOperations, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema

DEFAULT_DATABASE_PATH = "var/data.db"


class SqlitePlugin(Plugin):
    name = "dockyard/sqlite"
    version = "1.0.0"
    description = "SQLite file-based database"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        (
            schema.string("version", default="3")
            .label("SQLite version")
            .description("SQLite version (informational only)")
            .enum(["3"])
            .string("database_path", default=DEFAULT_DATABASE_PATH)
            .label("Database path")
            .description("Path to the SQLite database file")
        )
        return schema

    @provides_service
    def sqlite_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="sqlite",
            template="sqlite.yaml.j2",
            display_name="SQLite",
            description="Lightweight file-based SQL database",
            icon="📄",
            category=ServiceCategory.DATABASE,
            default_config={
                **self.config,
                "environment": {"DATABASE_PATH": self.config["database_path"]},
            },
            database_operations=DatabaseOperations(
                dump=lambda config: ["sqlite3", config.environment.get("DATABASE_PATH", DEFAULT_DATABASE_PATH), ".dump"],
                restore=lambda config: ["sqlite3", config.environment.get("DATABASE_PATH", DEFAULT_DATABASE_PATH)],
                shell=lambda config: ["sqlite3", config.environment.get("DATABASE_PATH", DEFAULT_DATABASE_PATH)],
            ),
            config_schema=self.schema,
        )
