"""Plugin base class and capability markers."""

import inspect
import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Tuple, Union

from dockyard.errors import InvalidPluginError
from dockyard.plugins.definitions import LifecycleEvent, PluginIdentity
from dockyard.plugins.schema import ConfigSchema

CAPABILITY_MARKER = "__dockyard_capability__"


class CapabilityKind(str, Enum):
    SERVICE = "service"
    COMMAND = "command"
    LIFECYCLE = "lifecycle"
    TEMPLATE = "template"


@dataclass(frozen=True)
class Capability:
    """One entry of a plugin class's capability table."""

    kind: CapabilityKind
    member: str = ""
    event: Optional[str] = None
    priority: int = 0
    template: Optional[str] = None


def _mark(func: Callable, capability: Capability) -> Callable:
    setattr(func, CAPABILITY_MARKER, capability)
    return func


def provides_service(func: Callable) -> Callable:
    """Mark a method returning a ServiceDefinition."""
    return _mark(func, Capability(CapabilityKind.SERVICE))


def provides_command(func: Callable) -> Callable:
    """Mark a method returning a CommandArtifact."""
    return _mark(func, Capability(CapabilityKind.COMMAND))


def on_lifecycle(event: Union[str, LifecycleEvent], priority: int = 0) -> Callable[[Callable], Callable]:
    """Mark a method as a handler for a lifecycle event. Higher priority runs first."""
    event_name = event.value if isinstance(event, LifecycleEvent) else str(event)

    def decorator(func: Callable) -> Callable:
        return _mark(func, Capability(CapabilityKind.LIFECYCLE, event=event_name, priority=priority))

    return decorator


def overrides_template(template: str) -> Callable[[Callable], Callable]:
    """Mark a method returning the replacement path for ``template``."""

    def decorator(func: Callable) -> Callable:
        return _mark(func, Capability(CapabilityKind.TEMPLATE, template=template))

    return decorator


def _collect_markers(table: Dict[str, Capability], namespace: Mapping[str, Any]) -> None:
    for member, value in namespace.items():
        marker = getattr(getattr(value, "__func__", value), CAPABILITY_MARKER, None)
        if marker is None:
            # an unmarked override drops the inherited capability
            if member in table and callable(value):
                del table[member]
            continue
        table[member] = replace(marker, member=member)


def build_capability_table(cls: type) -> Tuple[Capability, ...]:
    """Capability table of any class, bases first, in declaration order."""
    table: Dict[str, Capability] = {}
    for klass in reversed(cls.__mro__):
        _collect_markers(table, vars(klass))
    return tuple(table.values())


class Plugin:
    """Base class for dockyard plugins.

    Subclasses set the identity class attributes and mark the methods that
    contribute artifacts. The capability table is built once, when the
    subclass is defined, in declaration order (inherited entries first).
    """

    name: ClassVar[str] = ""
    version: ClassVar[str] = "1.0.0"
    description: ClassVar[str] = ""
    requires: ClassVar[Tuple[str, ...]] = ()
    capabilities: ClassVar[Tuple[Capability, ...]] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        table: Dict[str, Capability] = {cap.member: cap for cap in cls.capabilities}
        _collect_markers(table, cls.__dict__)
        cls.capabilities = tuple(table.values())

    def __init__(self):
        self.schema: Optional[ConfigSchema] = self.build_schema()
        self.config: Dict[str, Any] = self.schema.validate({}) if self.schema is not None else {}

    def build_schema(self) -> Optional[ConfigSchema]:
        """Declare the plugin's configuration options. Override in subclasses."""
        return None

    def config_schema(self) -> Optional[ConfigSchema]:
        return self.schema

    def configure(self, values: Mapping[str, Any]) -> None:
        """Apply user configuration, validated against the schema."""
        if self.schema is None:
            self.config = dict(values)
        else:
            self.config = self.schema.validate(values)

    @property
    def identity(self) -> PluginIdentity:
        return identity_of(self)

    def templates_dir(self) -> Path:
        """Directory holding this plugin's templates (``templates/`` beside its module)."""
        return Path(inspect.getfile(type(self))).resolve().parent / "templates"

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        if name:
            return logging.getLogger(f"plugin.{self.name}.{name}")
        return logging.getLogger(f"plugin.{self.name}")


def _read(plugin: Any, attribute: str, default: Any) -> Any:
    value = getattr(plugin, attribute, default)
    if callable(value):
        value = value()
    return default if value is None else value


def identity_of(plugin: Any) -> PluginIdentity:
    """Read the identity of any object exposing name/version/description.

    Raises:
        InvalidPluginError: the object has no usable name
    """
    name = _read(plugin, "name", "")
    if not isinstance(name, str) or not name:
        raise InvalidPluginError(f"{type(plugin).__name__} does not expose a plugin name")
    return PluginIdentity(
        name=name,
        version=str(_read(plugin, "version", "1.0.0")),
        description=str(_read(plugin, "description", "")),
        requires=tuple(_read(plugin, "requires", ())),
    )


def capabilities_of(plugin: Any) -> Tuple[Capability, ...]:
    """Capability table of a plugin's class.

    Plugin subclasses carry a table built at class creation; for any other
    class the markers are collected on demand.
    """
    if isinstance(plugin, Plugin):
        return type(plugin).capabilities
    return build_capability_table(type(plugin))
