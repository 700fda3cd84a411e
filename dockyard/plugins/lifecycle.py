"""Local plugin loading and lifecycle event dispatch."""

import importlib.util
import logging
import re
import sys
from typing import Any, Dict, List

from dockyard.errors import LifecycleHookError, PluginLoadError
from dockyard.plugins.base import identity_of
from dockyard.plugins.definitions import LifecycleEventData
from dockyard.plugins.discovery import LocalPlugin
from dockyard.plugins.registry import LoadedPlugin, PluginRegistry

logger = logging.getLogger(__name__)


class PluginLoader:
    """Imports a local plugin's entry point and instantiates it."""

    def load(self, local: LocalPlugin) -> Any:
        """Load the plugin module and resolve its entry point.

        Args:
            local: Discovered plugin

        Returns:
            Plugin instance

        Raises:
            PluginLoadError: module missing, entry point invalid or identity mismatch
        """
        module_name, attr_name = local.manifest.entry_point.split(":")
        module_file = local.path.joinpath(*module_name.split(".")).with_suffix(".py")
        if not module_file.exists():
            raise PluginLoadError(local.path, f"entry point module {module_file.name} not found")

        # Plugin directory on sys.path while importing, for sibling imports
        plugin_dir = str(local.path)
        added = plugin_dir not in sys.path
        if added:
            sys.path.insert(0, plugin_dir)
        safe_name = re.sub(r"\W", "_", local.name)
        qualified_name = f"dockyard_plugin_{safe_name}_{module_name}"
        try:
            spec = importlib.util.spec_from_file_location(qualified_name, module_file)
            if spec is None or spec.loader is None:
                raise PluginLoadError(local.path, f"cannot import {module_file.name}")
            module = importlib.util.module_from_spec(spec)
            # inspect.getfile() needs the module registered to find templates_dir
            sys.modules[qualified_name] = module
            spec.loader.exec_module(module)
        except PluginLoadError:
            raise
        except Exception as e:
            sys.modules.pop(qualified_name, None)
            logger.error(f"Failed to import plugin {local.name}: {e}")
            raise PluginLoadError(local.path, f"import failed: {type(e).__name__}: {e}") from e
        finally:
            if added and plugin_dir in sys.path:
                sys.path.remove(plugin_dir)

        entry = getattr(module, attr_name, None)
        if entry is None:
            raise PluginLoadError(local.path, f"module {module_name} has no attribute '{attr_name}'")
        if not callable(entry):
            raise PluginLoadError(local.path, f"{module_name}.{attr_name} is not callable")

        try:
            instance = entry()
        except Exception as e:
            raise PluginLoadError(local.path, f"{attr_name}() failed: {type(e).__name__}: {e}") from e

        name = identity_of(instance).name
        if name != local.name:
            raise PluginLoadError(local.path, f"plugin reports name '{name}', manifest says '{local.name}'")

        logger.info(f"Loaded plugin: {local.name} from {local.path}")
        return instance

    def verify_capabilities(self, local: LocalPlugin, loaded: LoadedPlugin) -> None:
        """Check the registered plugin provides exactly what its manifest promises.

        Skipped when the manifest declares no ``capabilities`` block.
        """
        if "capabilities" not in local.manifest.model_fields_set:
            return

        promised = local.manifest.capabilities
        actual: Dict[str, List[str]] = {
            "services": [s.name for s in loaded.services],
            "commands": [c.name for c in loaded.commands],
            "lifecycle": [h.event for h in loaded.lifecycle],
            "templates": [o.original for o in loaded.template_overrides],
        }
        for kind, names in actual.items():
            expected = getattr(promised, kind)
            if sorted(expected) != sorted(names):
                raise PluginLoadError(
                    local.path,
                    f"manifest promises {kind} {sorted(expected)} but plugin provides {sorted(names)}",
                )


class PluginLifecycleDispatcher:
    """Dispatches lifecycle events to the registered handlers, highest priority first."""

    def __init__(self, registry: PluginRegistry):
        self.registry = registry

    def dispatch(self, event: str, data: LifecycleEventData) -> int:
        """Invoke every handler registered for ``event``.

        Returns:
            Number of handlers invoked

        Raises:
            LifecycleHookError: a handler raised
        """
        handlers = self.registry.catalog().handlers_for(event)
        for handler in handlers:
            try:
                handler.handler(data)
            except Exception as e:
                logger.error(f"Lifecycle handler of {handler.plugin_name} for {event} failed: {e}")
                raise LifecycleHookError(event, handler.plugin_name, e) from e
        if handlers:
            logger.debug(f"Dispatched {event} to {len(handlers)} handler(s)")
        return len(handlers)
