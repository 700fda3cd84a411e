"""Tests for PluginRegistry merge policy and catalogs."""

import logging
from pathlib import Path

import pytest

from dockyard.errors import (
    DuplicatePluginError,
    ExtractionError,
    InvalidPluginError,
    PluginNotFoundError,
    RangeError,
    UnknownServiceError,
)
from dockyard.plugins.base import Plugin, on_lifecycle, overrides_template, provides_command, provides_service
from dockyard.plugins.definitions import CommandArtifact, ServiceDefinition
from dockyard.plugins.registry import PluginRegistry
from dockyard.plugins.schema import ConfigSchema


def redis_service(template="redis.yaml.j2"):
    return ServiceDefinition(name="redis", template=template, ports=(6379,), internal_ports=(6379,))


class RedisPlugin(Plugin):
    name = "test/redis"
    version = "1.2.0"
    description = "Redis cache"

    def build_schema(self):
        schema = ConfigSchema()
        schema.string("version", default="7-alpine")
        schema.integer("port", default=6379, min=1, max=65535)
        schema.string("password", default="hunter2").secret()
        return schema

    @provides_service
    def redis(self):
        return redis_service()

    @on_lifecycle("before:init", priority=10)
    def prepare(self, data):
        pass


class CustomRedisPlugin(Plugin):
    name = "test/custom-redis"

    @provides_service
    def redis(self):
        return redis_service(template="custom-redis.yaml.j2")

    @on_lifecycle("before:init", priority=10)
    def prepare(self, data):
        pass

    @on_lifecycle("before:init", priority=50)
    def urgent(self, data):
        pass

    @overrides_template("redis.yaml.j2")
    def redis_template(self):
        return "/srv/templates/redis.yaml.j2"


class ToolsPlugin(Plugin):
    name = "test/tools"

    @provides_command
    def doctor(self):
        return CommandArtifact(name="doctor", handler=lambda args: 0)

    @on_lifecycle("before:init")
    def late(self, data):
        pass


class BrokenPlugin(Plugin):
    name = "test/broken"

    @provides_service
    def working(self):
        return ServiceDefinition(name="working", template="working.yaml.j2")

    @provides_command
    def broken(self):
        raise ValueError("cannot build command")


class TestRegister:
    """Tests for plugin registration."""

    def test_register_and_lookup(self):
        registry = PluginRegistry()
        loaded = registry.register(RedisPlugin(), source="bundled")

        assert registry.has("test/redis")
        assert registry.get("test/redis") is loaded
        assert registry.count() == 1
        assert loaded.identity.version == "1.2.0"
        assert loaded.source == "bundled"
        assert [s.name for s in loaded.services] == ["redis"]

    def test_get_missing(self):
        with pytest.raises(PluginNotFoundError):
            PluginRegistry().get("test/nope")

    def test_duplicate_plugin_rejected(self):
        registry = PluginRegistry()
        registry.register(RedisPlugin())
        with pytest.raises(DuplicatePluginError) as exc_info:
            registry.register(RedisPlugin())
        assert exc_info.value.name == "test/redis"
        assert registry.count() == 1

    def test_object_without_name_rejected(self):
        class Anonymous:
            pass

        with pytest.raises(InvalidPluginError):
            PluginRegistry().register(Anonymous())

    def test_duck_typed_plugin_accepted(self):
        """Any object with a name registers; without marked members it contributes nothing."""

        class Minimal:
            name = "test/minimal"

            def version(self):
                return "0.1.0"

        loaded = PluginRegistry().register(Minimal())
        assert loaded.identity.version == "0.1.0"
        assert loaded.services == ()

    def test_duck_typed_plugin_markers_recognised(self):
        """Capability markers work on classes that do not derive from Plugin."""

        class Base:
            @provides_service
            def redis(self):
                return redis_service()

        class Duck(Base):
            name = "acme/duck"

            @provides_command
            def flush(self):
                return CommandArtifact(name="flush", handler=lambda args: 0)

        registry = PluginRegistry()
        loaded = registry.register(Duck())
        assert [s.name for s in loaded.services] == ["redis"]
        assert [c.name for c in loaded.commands] == ["flush"]
        assert registry.service_owner("redis") == "acme/duck"

    def test_all_in_registration_order(self):
        registry = PluginRegistry()
        registry.register(ToolsPlugin())
        registry.register(RedisPlugin())
        assert [p.name for p in registry.all()] == ["test/tools", "test/redis"]


class TestConfiguration:
    """Tests for configuration applied at registration."""

    def test_config_validated_and_applied(self):
        registry = PluginRegistry()
        plugin = RedisPlugin()
        registry.register(plugin, config={"port": 6380, "unknown": True})
        assert plugin.config == {"version": "7-alpine", "port": 6380, "password": "hunter2"}

    def test_invalid_config_not_registered(self):
        registry = PluginRegistry()
        with pytest.raises(RangeError):
            registry.register(RedisPlugin(), config={"port": 0})
        assert not registry.has("test/redis")
        assert "redis" not in registry.catalog().services

    def test_to_dict_redacts_secrets(self):
        registry = PluginRegistry()
        loaded = registry.register(RedisPlugin())
        info = loaded.to_dict()
        assert info["config"]["password"] == "********"
        assert info["config"]["port"] == 6379
        assert info["services"] == ["redis"]
        assert info["lifecycle"] == ["before:init"]
        assert info["config_schema"]["port"]["type"] == "integer"


class TestMergePolicy:
    """Tests for how catalogs merge across plugins."""

    def test_later_service_wins(self, caplog):
        registry = PluginRegistry()
        registry.register(RedisPlugin())
        with caplog.at_level(logging.WARNING, logger="dockyard.plugins.registry"):
            registry.register(CustomRedisPlugin())

        assert registry.service("redis").template == "custom-redis.yaml.j2"
        assert registry.service_owner("redis") == "test/custom-redis"
        assert "overridden by 'test/custom-redis'" in caplog.text

    def test_unknown_service(self):
        registry = PluginRegistry()
        registry.register(RedisPlugin())
        with pytest.raises(UnknownServiceError) as exc_info:
            registry.service("postgresql")
        assert exc_info.value.available == ("redis",)
        with pytest.raises(UnknownServiceError):
            registry.service_owner("postgresql")

    def test_lifecycle_sorted_by_priority_ties_in_registration_order(self):
        registry = PluginRegistry()
        registry.register(ToolsPlugin())
        registry.register(RedisPlugin())
        registry.register(CustomRedisPlugin())

        handlers = registry.catalog().handlers_for("before:init")
        order = [(h.plugin_name, h.priority) for h in handlers]
        assert order == [
            ("test/custom-redis", 50),
            ("test/redis", 10),
            ("test/custom-redis", 10),
            ("test/tools", 0),
        ]

    def test_template_override(self):
        registry = PluginRegistry()
        registry.register(CustomRedisPlugin())
        assert registry.catalog().template_overrides == {"redis.yaml.j2": "/srv/templates/redis.yaml.j2"}

    def test_commands_accumulate(self):
        registry = PluginRegistry()
        registry.register(ToolsPlugin())
        assert [c.name for c in registry.catalog().commands] == ["doctor"]

    def test_failed_extraction_leaves_catalogs_untouched(self):
        registry = PluginRegistry()
        with pytest.raises(ExtractionError) as exc_info:
            registry.register(BrokenPlugin())
        assert exc_info.value.member_name == "broken"
        assert not registry.has("test/broken")
        assert "working" not in registry.catalog().services


class TestCatalog:
    """Tests for catalog snapshots."""

    def test_catalog_is_read_only(self):
        registry = PluginRegistry()
        registry.register(RedisPlugin())
        catalog = registry.catalog()
        with pytest.raises(TypeError):
            catalog.services["postgresql"] = redis_service()
        with pytest.raises(TypeError):
            catalog.template_overrides["x"] = "y"

    def test_snapshot_not_affected_by_later_registration(self):
        registry = PluginRegistry()
        registry.register(RedisPlugin())
        catalog = registry.catalog()
        registry.register(CustomRedisPlugin())
        assert catalog.services["redis"].template == "redis.yaml.j2"
        assert registry.catalog().services["redis"].template == "custom-redis.yaml.j2"

    def test_template_search_paths_only_existing_dirs(self, tmp_path):
        templates = tmp_path / "templates"
        templates.mkdir()

        class WithTemplates(Plugin):
            name = "test/with-templates"

            def templates_dir(self):
                return templates

        class WithoutTemplates(Plugin):
            name = "test/without-templates"

            def templates_dir(self):
                return Path(tmp_path / "missing")

        registry = PluginRegistry()
        registry.register(WithTemplates())
        registry.register(WithoutTemplates())
        assert registry.template_search_paths() == [templates]
