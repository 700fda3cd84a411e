"""Error types for dockyard.

Every error carries the context needed to render a precise message
(field names, offending values, bounds, plugin and member names).
"""

from typing import Any, Iterable, Optional, Sequence


class DockyardError(Exception):
    """Base error for dockyard."""


# --- Config schema -----------------------------------------------------------


class ValidationError(DockyardError):
    """A configuration value does not satisfy its field declaration."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid value for '{field}': {message}")


class TypeMismatchError(ValidationError):
    def __init__(self, field: str, expected_type: str, actual_type: str):
        self.expected_type = expected_type
        self.actual_type = actual_type
        super().__init__(field, f"expected {expected_type}, got {actual_type}")


class RangeError(ValidationError):
    def __init__(self, field: str, value: int, min: Optional[int], max: Optional[int]):
        self.value = value
        self.min = min
        self.max = max
        lower = "-inf" if min is None else str(min)
        upper = "+inf" if max is None else str(max)
        super().__init__(field, f"{value} is outside [{lower}, {upper}]")


class EnumViolationError(ValidationError):
    def __init__(self, field: str, value: Any, allowed: Sequence[Any]):
        self.value = value
        self.allowed = tuple(allowed)
        choices = ", ".join(str(a) for a in self.allowed)
        super().__init__(field, f"{value!r} is not one of: {choices}")


class SchemaError(DockyardError):
    """A config schema was declared incorrectly."""


class DuplicateFieldError(SchemaError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Field '{key}' is already declared")


class NoActiveFieldError(SchemaError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot call {operation}() before declaring a field")


class InvalidFieldError(SchemaError):
    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid declaration for field '{key}': {reason}")


# --- Plugins -----------------------------------------------------------------


class PluginError(DockyardError):
    """Raised when plugin loading, registration or extraction fails."""


class ExtractionError(PluginError):
    def __init__(self, plugin_name: str, member_name: str, cause: BaseException):
        self.plugin_name = plugin_name
        self.member_name = member_name
        self.cause = cause
        super().__init__(
            f"Plugin '{plugin_name}' failed to provide '{member_name}': "
            f"{type(cause).__name__}: {cause}"
        )


class DuplicatePluginError(PluginError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Plugin '{name}' is already registered")


class InvalidPluginError(PluginError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid plugin: {reason}")


class PluginLoadError(PluginError):
    def __init__(self, path: Any, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load plugin at {path}: {reason}")


class PluginNotFoundError(PluginError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Plugin '{name}' not found")


class LifecycleHookError(PluginError):
    def __init__(self, event: str, plugin_name: str, cause: BaseException):
        self.event = event
        self.plugin_name = plugin_name
        self.cause = cause
        super().__init__(f"Lifecycle hook '{event}' of plugin '{plugin_name}' failed: {cause}")


class InvalidServiceDefinitionError(DockyardError):
    def __init__(self, service: str, reason: str):
        self.service = service
        self.reason = reason
        super().__init__(f"Invalid service definition '{service}': {reason}")


# --- Port allocation ---------------------------------------------------------


class PortAllocationError(DockyardError):
    """Raised when a service's host ports cannot be allocated."""

    def __init__(self, service_name: str, requested_port: int, message: str):
        self.service_name = service_name
        self.requested_port = requested_port
        super().__init__(message)


class NoPortsAvailableError(PortAllocationError):
    def __init__(self, service_name: str, requested_port: int, window: int):
        self.window = window
        super().__init__(
            service_name,
            requested_port,
            f'No available ports found for "{service_name}" (tried {requested_port} to {window})',
        )


class PortReassignmentRejectedError(PortAllocationError):
    def __init__(self, service_name: str, requested_port: int):
        super().__init__(
            service_name,
            requested_port,
            f'Port allocation for "{service_name}" (port {requested_port}) was rejected',
        )


# --- Project configuration ---------------------------------------------------


class ConfigurationError(DockyardError):
    """A resolved Configuration would violate its invariants."""


class UnknownServiceError(ConfigurationError):
    def __init__(self, name: str, available: Iterable[str] = ()):
        self.name = name
        self.available = tuple(available)
        hint = f" (available: {', '.join(self.available)})" if self.available else ""
        super().__init__(f"Unknown service '{name}'{hint}")


class DuplicateServiceError(ConfigurationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Service '{name}' is selected more than once")


class DuplicatePortError(ConfigurationError):
    def __init__(self, port: int, services: Sequence[str]):
        self.port = port
        self.services = tuple(services)
        super().__init__(f"Host port {port} is allocated to more than one service: {', '.join(self.services)}")


class ProjectConfigError(DockyardError):
    def __init__(self, path: Any, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid project configuration {path}: {reason}")


# --- Manifest generation -----------------------------------------------------


class TemplateRenderError(DockyardError):
    def __init__(self, template: str, detail: str, missing_key: Optional[str] = None):
        self.template = template
        self.detail = detail
        self.missing_key = missing_key
        message = f"Failed to render template '{template}': {detail}"
        if missing_key:
            message += f" (missing context key '{missing_key}')"
        super().__init__(message)
