"""Apache Kafka bundled plugin, single-node KRaft."""

from dockyard.plugins.base import Plugin, provides_service
from dockyard.plugins.definitions import HealthCheck, ServiceCategory, ServiceDefinition
from dockyard.plugins.schema import ConfigSchema


class KafkaPlugin(Plugin):
    name = "dockyard/kafka"
    version = "1.0.0"
    description = "Apache Kafka event streaming service"

    def build_schema(self) -> ConfigSchema:
        schema = ConfigSchema()
        (
            schema.string("version", default="3.7")
            .label("Kafka version")
            .enum(["3.6", "3.7", "3.8", "3.9", "latest"])
            .integer("port", default=9092, min=1, max=65535)
            .label("Broker port")
        )
        return schema

    @provides_service
    def kafka_service(self) -> ServiceDefinition:
        # The controller listener (9093) stays inside the container
        return ServiceDefinition(
            name="kafka",
            template="kafka.yaml.j2",
            display_name="Apache Kafka",
            description="Distributed event streaming platform",
            icon="📨",
            category=ServiceCategory.QUEUE,
            ports=(self.config["port"],),
            internal_ports=(9092,),
            default_config={
                **self.config,
                "environment": {
                    "KAFKA_NODE_ID": "1",
                    "KAFKA_PROCESS_ROLES": "broker,controller",
                    "KAFKA_LISTENERS": "PLAINTEXT://:9092,CONTROLLER://:9093",
                    "KAFKA_CONTROLLER_LISTENER_NAMES": "CONTROLLER",
                    "KAFKA_LISTENER_SECURITY_PROTOCOL_MAP": "CONTROLLER:PLAINTEXT,PLAINTEXT:PLAINTEXT",
                    "KAFKA_CONTROLLER_QUORUM_VOTERS": "1@localhost:9093",
                    "KAFKA_OFFSETS_TOPIC_REPLICATION_FACTOR": "1",
                },
            },
            health_check=HealthCheck(
                test=(
                    "CMD-SHELL",
                    "/opt/kafka/bin/kafka-cluster.sh cluster-id --bootstrap-server localhost:9092 || exit 1",
                ),
                timeout="10s",
            ),
            config_schema=self.schema,
        )
