"""Plugin discovery - finds local plugins by their plugin.json manifests."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from dockyard.errors import PluginLoadError
from dockyard.plugins.manifest import PluginManifest

logger = logging.getLogger(__name__)


@dataclass
class LocalPlugin:
    """A plugin found on disk, not yet imported."""

    manifest: PluginManifest
    path: Path

    @property
    def name(self) -> str:
        return self.manifest.name


class PluginDiscovery:
    """Discovers plugins in a project's plugin directory.

    Each plugin is a sub-directory holding a ``plugin.json`` manifest.
    """

    MANIFEST_FILE = "plugin.json"

    def __init__(self, plugins_dir: Path):
        self.plugins_dir = plugins_dir

    def discover_all(self, order: Optional[Sequence[str]] = None) -> List[LocalPlugin]:
        """Discover local plugins.

        Args:
            order: Plugin directory names in load order. When omitted, every
                   sub-directory with a manifest is loaded in sorted order.

        Returns:
            List of discovered plugins, in load order

        Raises:
            PluginLoadError: a declared plugin is missing or a manifest is invalid
        """
        if order:
            discovered = [self.discover_single(self.plugins_dir / name) for name in order]
        elif not self.plugins_dir.is_dir():
            logger.debug(f"Plugin directory does not exist: {self.plugins_dir}")
            return []
        else:
            discovered = [
                self._load_manifest(item / self.MANIFEST_FILE)
                for item in sorted(self.plugins_dir.iterdir())
                if item.is_dir() and (item / self.MANIFEST_FILE).exists()
            ]

        seen = set()
        for plugin in discovered:
            if plugin.name in seen:
                raise PluginLoadError(plugin.path, f"duplicate plugin name '{plugin.name}'")
            seen.add(plugin.name)

        logger.info(f"Discovered {len(discovered)} local plugin(s) in {self.plugins_dir}")
        return discovered

    def discover_single(self, plugin_path: Path) -> LocalPlugin:
        """Discover a single plugin from a specific directory."""
        manifest_file = plugin_path / self.MANIFEST_FILE
        if not manifest_file.exists():
            raise PluginLoadError(plugin_path, f"no {self.MANIFEST_FILE} found")
        return self._load_manifest(manifest_file)

    def _load_manifest(self, manifest_file: Path) -> LocalPlugin:
        """Load and validate a plugin manifest."""
        try:
            with open(manifest_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            manifest = PluginManifest(**data)
        except json.JSONDecodeError as e:
            raise PluginLoadError(manifest_file, f"invalid JSON: {e}") from e
        except ValidationError as e:
            raise PluginLoadError(manifest_file, f"invalid manifest: {e}") from e
        except TypeError as e:
            raise PluginLoadError(manifest_file, "manifest must be a JSON object") from e

        logger.debug(f"Discovered plugin: {manifest.name} at {manifest_file.parent}")
        return LocalPlugin(manifest=manifest, path=manifest_file.parent)
