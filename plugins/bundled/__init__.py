"""Bundled plugins, registered in this order before any project plugin."""

from plugins.bundled.dozzle.plugin import DozzlePlugin
from plugins.bundled.elasticsearch.plugin import ElasticsearchPlugin
from plugins.bundled.kafka.plugin import KafkaPlugin
from plugins.bundled.mailpit.plugin import MailpitPlugin
from plugins.bundled.mariadb.plugin import MariadbPlugin
from plugins.bundled.memcached.plugin import MemcachedPlugin
from plugins.bundled.mercure.plugin import MercurePlugin
from plugins.bundled.minio.plugin import MinioPlugin
from plugins.bundled.mongodb.plugin import MongodbPlugin
from plugins.bundled.mysql.plugin import MysqlPlugin
from plugins.bundled.opensearch.plugin import OpensearchPlugin
from plugins.bundled.postgresql.plugin import PostgresqlPlugin
from plugins.bundled.rabbitmq.plugin import RabbitmqPlugin
from plugins.bundled.redis.plugin import RedisPlugin
from plugins.bundled.soketi.plugin import SoketiPlugin
from plugins.bundled.sqlite.plugin import SqlitePlugin
from plugins.bundled.traefik.plugin import TraefikPlugin
from plugins.bundled.valkey.plugin import ValkeyPlugin

BUNDLED_PLUGINS = (
    TraefikPlugin,
    PostgresqlPlugin,
    MysqlPlugin,
    MariadbPlugin,
    MongodbPlugin,
    SqlitePlugin,
    RedisPlugin,
    ValkeyPlugin,
    MemcachedPlugin,
    RabbitmqPlugin,
    KafkaPlugin,
    ElasticsearchPlugin,
    OpensearchPlugin,
    MinioPlugin,
    MailpitPlugin,
    DozzlePlugin,
    MercurePlugin,
    SoketiPlugin,
)

__all__ = ["BUNDLED_PLUGINS"] + [cls.__name__ for cls in BUNDLED_PLUGINS]
