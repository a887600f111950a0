"""
Typed view of the JSON Schema subset understood by the generator.

Only ``object``, ``array``, ``string``, ``number`` and ``boolean`` nodes are
supported. Keywords outside that subset (``description``, ``title``, ...) are
ignored here; the raw schema is still shown to the model verbatim.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from .errors import ConfigurationError

SCALAR_TYPES = ("string", "number", "boolean")
SCHEMA_TYPES = ("object", "array") + SCALAR_TYPES


@dataclass(frozen=True)
class StringSchema:
    type_name = "string"


@dataclass(frozen=True)
class NumberSchema:
    type_name = "number"


@dataclass(frozen=True)
class BooleanSchema:
    type_name = "boolean"


@dataclass(frozen=True)
class ArraySchema:
    items: "SchemaNode"
    type_name = "array"


@dataclass(frozen=True)
class ObjectSchema:
    # Declaration order is generation order.
    properties: dict[str, "SchemaNode"] = field(default_factory=dict)
    type_name = "object"


SchemaNode = Union[ObjectSchema, ArraySchema, StringSchema, NumberSchema, BooleanSchema]

_SCALARS: dict[str, SchemaNode] = {
    "string": StringSchema(),
    "number": NumberSchema(),
    "boolean": BooleanSchema(),
}


def _where(path: tuple[str, ...]) -> str:
    return "/".join(path) or "<root>"


def _parse(raw: Any, path: tuple[str, ...]) -> SchemaNode:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Schema node at {_where(path)} must be a mapping, got {type(raw).__name__}")

    schema_type = raw.get("type")
    if not isinstance(schema_type, str):
        raise ConfigurationError(f"Unsupported schema type {schema_type!r} at {_where(path)}")
    if schema_type in _SCALARS:
        return _SCALARS[schema_type]

    if schema_type == "array":
        if "items" not in raw:
            raise ConfigurationError(f"Array schema at {_where(path)} is missing 'items'")
        return ArraySchema(items=_parse(raw["items"], path + ("items",)))

    if schema_type == "object":
        properties = raw.get("properties")
        if not isinstance(properties, Mapping):
            raise ConfigurationError(f"Object schema at {_where(path)} is missing 'properties'")
        return ObjectSchema(
            properties={
                str(name): _parse(sub, path + ("properties", str(name)))
                for name, sub in properties.items()
            }
        )

    raise ConfigurationError(f"Unsupported schema type {schema_type!r} at {_where(path)}")


def parse_schema(raw: Mapping[str, Any]) -> SchemaNode:
    """Convert a JSON schema tree into typed schema nodes.

    Raises ConfigurationError for any node whose type is outside the supported subset.
    """
    return _parse(raw, ())


def parse_root_schema(raw: Mapping[str, Any]) -> ObjectSchema:
    """Parse the top-level schema, which must be an object with at least one property."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError("JSON schema must be a mapping")
    if not raw.get("properties"):
        raise ConfigurationError("Missing properties in JSON schema")
    if raw.get("type", "object") != "object":
        raise ConfigurationError(f"Top-level schema must be of type 'object', got {raw.get('type')!r}")
    node = _parse(dict(raw, type="object"), ())
    assert isinstance(node, ObjectSchema)
    return node


__all__ = [
    "SCALAR_TYPES",
    "SCHEMA_TYPES",
    "ArraySchema",
    "BooleanSchema",
    "NumberSchema",
    "ObjectSchema",
    "SchemaNode",
    "StringSchema",
    "parse_root_schema",
    "parse_schema",
]
