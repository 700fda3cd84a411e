"""Config schema - typed, validated option sets owned by plugins.

A schema is declared once when its plugin is constructed::

    schema = ConfigSchema()
    schema.string("version", default="16").label("PostgreSQL version").enum(["15", "16"])
    schema.integer("port", default=5432, min=1, max=65535)
    schema.string("password", default="dockyard").secret()

and then used to validate user input with :meth:`ConfigSchema.validate`.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from dockyard.errors import (
    DuplicateFieldError,
    EnumViolationError,
    InvalidFieldError,
    NoActiveFieldError,
    RangeError,
    TypeMismatchError,
)

logger = logging.getLogger(__name__)

FIELD_TYPES = ("string", "integer", "boolean")
REDACTED = "********"


def json_type_name(value: Any) -> str:
    """Return the JSON-style type name of a runtime value."""
    if value is None:
        return "null"
    # bool is a subclass of int, test it first
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def label_from_key(key: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in key.split("_") if word)


@dataclass(frozen=True)
class Field:
    """One configuration option."""

    key: str
    type: str
    default: Any = None
    min: Optional[int] = None
    max: Optional[int] = None
    enum: Optional[Tuple[Any, ...]] = None
    nullable: bool = False
    secret: bool = False
    label: str = ""
    description: str = ""

    def check(self, value: Any) -> Any:
        """Validate a single value against this field.

        Raises:
            TypeMismatchError: value has the wrong runtime type
            RangeError: integer value outside [min, max]
            EnumViolationError: value not in the allowed set
        """
        if value is None:
            if self.nullable:
                return None
            raise TypeMismatchError(self.key, self.type, "null")

        actual = json_type_name(value)
        if actual != self.type:
            raise TypeMismatchError(self.key, self.type, actual)

        if self.type == "integer":
            if (self.min is not None and value < self.min) or (self.max is not None and value > self.max):
                raise RangeError(self.key, value, self.min, self.max)

        if self.enum is not None and value not in self.enum:
            raise EnumViolationError(self.key, value, self.enum)

        return value

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "default": REDACTED if self.secret and self.default else self.default,
            "label": self.label,
        }
        if self.description:
            data["description"] = self.description
        if self.min is not None:
            data["min"] = self.min
        if self.max is not None:
            data["max"] = self.max
        if self.enum is not None:
            data["enum"] = list(self.enum)
        if self.nullable:
            data["nullable"] = True
        if self.secret:
            data["secret"] = True
        return data


class FieldBuilder:
    """Attaches metadata to one declared field.

    Returned by every declaration on :class:`ConfigSchema`. Declaration
    methods are forwarded to the schema so declarations can be chained.
    """

    def __init__(self, schema: "ConfigSchema", key: str):
        self._schema = schema
        self._key = key

    @property
    def field(self) -> Field:
        return self._schema.get(self._key)

    @property
    def schema(self) -> "ConfigSchema":
        return self._schema

    def enum(self, values: Sequence[Any]) -> "FieldBuilder":
        field = self.field
        if field.type == "boolean":
            raise InvalidFieldError(field.key, "enum() can only be used on string or integer fields")
        allowed = tuple(values)
        if not allowed:
            raise InvalidFieldError(field.key, "enum() needs at least one value")
        for value in allowed:
            if json_type_name(value) != field.type:
                raise InvalidFieldError(field.key, f"enum value {value!r} is not a {field.type}")
            if field.min is not None and value < field.min:
                raise InvalidFieldError(field.key, f"enum value {value!r} is below min {field.min}")
            if field.max is not None and value > field.max:
                raise InvalidFieldError(field.key, f"enum value {value!r} is above max {field.max}")
        if field.default is not None and field.default not in allowed:
            raise InvalidFieldError(field.key, f"default {field.default!r} is not in enum")
        self._schema._replace_field(replace(field, enum=allowed))
        return self

    constrain = enum

    def label(self, text: str) -> "FieldBuilder":
        self._schema._replace_field(replace(self.field, label=text))
        return self

    def description(self, text: str) -> "FieldBuilder":
        self._schema._replace_field(replace(self.field, description=text))
        return self

    def secret(self) -> "FieldBuilder":
        field = self.field
        if field.type != "string":
            raise InvalidFieldError(field.key, "secret() can only be used on string fields")
        self._schema._replace_field(replace(field, secret=True))
        return self

    def declare_field(self, *args, **kwargs) -> "FieldBuilder":
        return self._schema.declare_field(*args, **kwargs)

    def integer(self, *args, **kwargs) -> "FieldBuilder":
        return self._schema.integer(*args, **kwargs)

    def string(self, *args, **kwargs) -> "FieldBuilder":
        return self._schema.string(*args, **kwargs)

    def boolean(self, *args, **kwargs) -> "FieldBuilder":
        return self._schema.boolean(*args, **kwargs)


class ConfigSchema:
    """Ordered, typed option set of one plugin-provided feature."""

    def __init__(self):
        self._fields: Dict[str, Field] = {}
        self._last_key: Optional[str] = None

    def declare_field(
        self,
        key: str,
        type: str,
        default: Any = None,
        *,
        min: Optional[int] = None,
        max: Optional[int] = None,
        enum: Optional[Sequence[Any]] = None,
        nullable: bool = False,
        secret: bool = False,
        label: Optional[str] = None,
        description: str = "",
    ) -> FieldBuilder:
        """Declare a field and return a builder bound to it.

        Raises:
            DuplicateFieldError: key already declared
            InvalidFieldError: declaration is inconsistent
        """
        if key in self._fields:
            raise DuplicateFieldError(key)
        if type not in FIELD_TYPES:
            raise InvalidFieldError(key, f"unknown field type '{type}'")
        if type != "integer" and (min is not None or max is not None):
            raise InvalidFieldError(key, "min/max can only be used on integer fields")
        if min is not None and max is not None and min > max:
            raise InvalidFieldError(key, f"min {min} is greater than max {max}")
        if nullable and type != "string":
            raise InvalidFieldError(key, "only string fields can be nullable")

        field = Field(
            key=key,
            type=type,
            default=default,
            min=min,
            max=max,
            nullable=nullable,
            label=label if label is not None else label_from_key(key),
            description=description,
        )
        try:
            field.check(default)
        except (TypeMismatchError, RangeError) as e:
            raise InvalidFieldError(key, f"default is invalid ({e})") from e

        self._fields[key] = field
        self._last_key = key
        builder = FieldBuilder(self, key)
        if enum is not None:
            builder.enum(enum)
        if secret:
            builder.secret()
        return builder

    def integer(
        self,
        key: str,
        default: int = 0,
        min: Optional[int] = None,
        max: Optional[int] = None,
    ) -> FieldBuilder:
        return self.declare_field(key, "integer", default, min=min, max=max)

    def string(self, key: str, default: Optional[str] = None, nullable: bool = False) -> FieldBuilder:
        if default is None and not nullable:
            default = ""
        return self.declare_field(key, "string", default, nullable=nullable)

    def boolean(self, key: str, default: bool = False) -> FieldBuilder:
        return self.declare_field(key, "boolean", default)

    # Metadata on the most recently declared field

    def _active(self, operation: str) -> FieldBuilder:
        if self._last_key is None:
            raise NoActiveFieldError(operation)
        return FieldBuilder(self, self._last_key)

    def enum(self, values: Sequence[Any]) -> FieldBuilder:
        return self._active("enum").enum(values)

    def constrain(self, values: Sequence[Any]) -> FieldBuilder:
        return self._active("constrain").enum(values)

    def label(self, text: str) -> FieldBuilder:
        return self._active("label").label(text)

    def description(self, text: str) -> FieldBuilder:
        return self._active("description").description(text)

    def secret(self) -> FieldBuilder:
        return self._active("secret").secret()

    def _replace_field(self, field: Field) -> None:
        self._fields[field.key] = field

    # Introspection

    def fields(self) -> Tuple[Field, ...]:
        return tuple(self._fields.values())

    def keys(self) -> List[str]:
        return list(self._fields)

    def get(self, key: str) -> Field:
        return self._fields[key]

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields())

    def __len__(self) -> int:
        return len(self._fields)

    # Validation

    def validate(self, values: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Validate input values and fill in defaults.

        Keys not declared by the schema are ignored and do not appear in the
        result. The result always covers every declared field, in
        declaration order.

        Args:
            values: Partial key -> value mapping

        Returns:
            Complete key -> value mapping
        """
        values = values or {}
        unknown = [key for key in values if key not in self._fields]
        if unknown:
            logger.debug(f"Ignoring undeclared config keys: {', '.join(map(str, unknown))}")

        validated: Dict[str, Any] = {}
        for key, field in self._fields.items():
            value = values[key] if key in values else field.default
            validated[key] = field.check(value)
        return validated

    def redact(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Copy of values with secret fields masked, for display."""
        redacted = dict(values)
        for field in self._fields.values():
            if field.secret and redacted.get(field.key):
                redacted[field.key] = REDACTED
        return redacted

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {key: field.to_dict() for key, field in self._fields.items()}
