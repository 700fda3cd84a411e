"""Capability extractors - harvest the artifacts a plugin contributes.

Each extractor walks the plugin's capability table (built when the plugin
class was defined) and produces one artifact per marked method, in
declaration order. A failure aborts extraction for the whole plugin.
"""

import logging
from pathlib import Path
from typing import Any, Callable, List

from dockyard.errors import ExtractionError
from dockyard.plugins.base import Capability, CapabilityKind, capabilities_of, identity_of
from dockyard.plugins.definitions import (
    CommandArtifact,
    LifecycleHandler,
    ServiceDefinition,
    TemplateOverride,
)

logger = logging.getLogger(__name__)


class _Extractor:
    kind: CapabilityKind

    def extract(self, plugin: Any) -> List[Any]:
        plugin_name = identity_of(plugin).name
        artifacts = []
        for capability in capabilities_of(plugin):
            if capability.kind != self.kind:
                continue
            try:
                member = getattr(plugin, capability.member)
                artifacts.append(self._build(member, capability, plugin_name))
            except Exception as e:
                logger.error(f"Extraction of {self.kind.value} '{capability.member}' from {plugin_name} failed: {e}")
                raise ExtractionError(plugin_name, capability.member, e) from e
        logger.debug(f"Extracted {len(artifacts)} {self.kind.value} artifact(s) from {plugin_name}")
        return artifacts

    def _build(self, member: Callable, capability: Capability, plugin_name: str) -> Any:
        raise NotImplementedError


def _expect(value: Any, expected: type, member: Callable) -> Any:
    if not isinstance(value, expected):
        raise TypeError(
            f"{getattr(member, '__name__', member)}() returned {type(value).__name__}, "
            f"expected {expected.__name__}"
        )
    return value


class ServiceExtractor(_Extractor):
    kind = CapabilityKind.SERVICE

    def _build(self, member: Callable, capability: Capability, plugin_name: str) -> ServiceDefinition:
        return _expect(member(), ServiceDefinition, member)


class CommandExtractor(_Extractor):
    kind = CapabilityKind.COMMAND

    def _build(self, member: Callable, capability: Capability, plugin_name: str) -> CommandArtifact:
        return _expect(member(), CommandArtifact, member)


class LifecycleExtractor(_Extractor):
    """Lifecycle handlers are bound methods; they run when the event is dispatched."""

    kind = CapabilityKind.LIFECYCLE

    def _build(self, member: Callable, capability: Capability, plugin_name: str) -> LifecycleHandler:
        if not callable(member):
            raise TypeError(f"{capability.member} is not callable")
        return LifecycleHandler(
            event=capability.event,
            priority=capability.priority,
            handler=member,
            plugin_name=plugin_name,
        )


class TemplateExtractor(_Extractor):
    kind = CapabilityKind.TEMPLATE

    def _build(self, member: Callable, capability: Capability, plugin_name: str) -> TemplateOverride:
        replacement = member()
        if not isinstance(replacement, (str, Path)):
            raise TypeError(
                f"{capability.member}() returned {type(replacement).__name__}, expected a path"
            )
        return TemplateOverride(original=capability.template, replacement=str(replacement))
