"""Shared fixtures."""

import shutil
from pathlib import Path

import pytest

from dockyard.plugins.registry import PluginRegistry
from dockyard.services.port_allocator import PortAllocator, PortChecker
from dockyard.services.project_config import ProjectFile
from plugins.bundled import BUNDLED_PLUGINS

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def bundled_registry():
    """Registry holding every bundled plugin with default configuration."""
    registry = PluginRegistry()
    for plugin_class in BUNDLED_PLUGINS:
        registry.register(plugin_class(), source="bundled")
    return registry


@pytest.fixture
def offline_allocator():
    """Allocator that only considers ports committed in the configuration."""
    return PortAllocator(checker=PortChecker(check_host=False))


@pytest.fixture
def project():
    return ProjectFile(
        project="shop",
        services={"postgresql": {}, "redis": {"environment": {"REDIS_ARGS": "--save 60 1"}}},
    )


@pytest.fixture
def project_dir(tmp_path):
    root = tmp_path / "shop"
    root.mkdir()
    return root


@pytest.fixture
def clickhouse_plugin_dir(project_dir):
    """The ClickHouse fixture plugin copied into the project's local plugin directory."""
    target = project_dir / ".dockyard" / "plugins" / "clickhouse"
    shutil.copytree(FIXTURES_DIR / "plugins" / "clickhouse", target)
    return target
