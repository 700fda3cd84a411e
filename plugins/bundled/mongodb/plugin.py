"""MongoDB bundled plugin."""

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


def _credentials(config: ServiceConfig) -> List[str]:
    env = config.environment
    return [
        "--username",
        env.get("MONGO_INITDB_ROOT_USERNAME", "root"),
        "--password",
        env.get("MONGO_INITDB_ROOT_PASSWORD", ""),
        "--authenticationDatabase",
        "admin",
    ]


class MongodbPlugin(Plugin):
    name = "dockyard/mongodb"
    version = "1.0.0"
    description = "MongoDB document database service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        schema.string("version", default="7").label("MongoDB version")
        schema.integer("port", default=27017, min=1, max=65535).label("Port")
        schema.string("database", default="dockyard")
        schema.string("user", default="dockyard")
        schema.string("password", default="dockyard").secret()
        return schema

    @provides_service
    def mongodb_service(self) -> ServiceDefinition:
        return ServiceDefinition(
            name="mongodb",
            template="mongodb.yaml.j2",
            display_name="MongoDB",
            description="Document-oriented NoSQL database",
            icon="🍃",
            category=ServiceCategory.DATABASE,
            ports=(self.config["port"],),
            internal_ports=(27017,),
            default_config={
                **self.config,
                "environment": {
                    "MONGO_INITDB_ROOT_USERNAME": self.config["user"],
                    "MONGO_INITDB_ROOT_PASSWORD": self.config["password"],
                    "MONGO_INITDB_DATABASE": self.config["database"],
                },
            },
            health_check=HealthCheck(test=("CMD", "mongosh", "--eval", 'db.adminCommand("ping")')),
            database_operations=DatabaseOperations(
                dump=lambda config: ["mongodump", *_credentials(config), "--archive"],
                restore=lambda config: ["mongorestore", *_credentials(config), "--archive", "--drop"],
                shell=lambda config: ["mongosh", *_credentials(config)],
            ),
            config_schema=self.schema,
        )
