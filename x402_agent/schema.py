"""
schema.py — Convert an endpoint's parameter schema into a pydantic model.

The model is used to check tool-call arguments before any request (and
therefore any payment) is made. Conversion happens once per endpoint at
startup; a schema that cannot be converted aborts registration.

Supported node kinds: object, string (optionally enum), number, boolean,
array. Anything else raises SchemaConversionError with the property path
(`filters.range`, `tags[]`) for diagnostics.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Mapping, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, create_model

from .errors import SchemaConversionError, ValidationError
from .models import ParameterSchema

logger = logging.getLogger("x402_agent.schema")

_SchemaLike = Union[ParameterSchema, Mapping[str, Any]]

_ARGUMENT_MODEL_CONFIG = ConfigDict(extra="ignore")


def json_schema_to_model(
    schema: _SchemaLike,
    model_name: str = "Arguments",
) -> Optional[type[BaseModel]]:
    """
    Build a pydantic model for the root of a parameter schema.

    Returns:
        The model class, or None when the schema declares no properties,
        meaning the endpoint takes no arguments at all.

    Raises:
        SchemaConversionError: root is not an object, or a property has an
            unsupported type, an empty enum, or an array without items.
    """
    node = _as_mapping(schema)
    if not node or node.get("type") != "object":
        raise SchemaConversionError(
            'Root schema must be type "object"',
            schema_type=(node or {}).get("type"),
        )
    model = _object_model(node, model_name, path="")
    logger.debug(
        "Argument model for %s: %s",
        model_name, "no parameters" if model is None else sorted(node["properties"]),
    )
    return model


def validate_arguments_against(
    model: Optional[type[BaseModel]],
    arguments: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Validate arguments with a model from json_schema_to_model().

    Returns the coerced arguments keyed by their original names. Raises
    ValidationError naming the first offending field.
    """
    if model is None:
        return {}
    try:
        instance = model.model_validate(dict(arguments))
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(
            f'Invalid value for parameter "{field}": {first["msg"]}',
            field=field,
        ) from exc
    return instance.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _as_mapping(schema: Optional[_SchemaLike]) -> Optional[Mapping[str, Any]]:
    if isinstance(schema, ParameterSchema):
        return schema.to_json_schema()
    return schema


def _object_model(
    node: Mapping[str, Any],
    model_name: str,
    path: str,
) -> Optional[type[BaseModel]]:
    properties = node.get("properties") or {}
    if not properties:
        return None

    required = set(node.get("required") or [])
    fields: dict[str, Any] = {}
    for index, (prop_name, prop_schema) in enumerate(properties.items()):
        prop_path = f"{path}.{prop_name}" if path else prop_name
        annotation = _property_type(prop_schema, prop_path, model_name)
        description = prop_schema.get("description")

        # Field names are positional; the JSON key travels as the alias so
        # keys like "from" or "page-size" need no escaping.
        if prop_name in required:
            fields[f"field_{index}"] = (
                annotation,
                Field(..., alias=prop_name, description=description),
            )
        else:
            fields[f"field_{index}"] = (
                Optional[annotation],
                Field(default=None, alias=prop_name, description=description),
            )

    return create_model(model_name, __config__=_ARGUMENT_MODEL_CONFIG, **fields)


def _property_type(prop_schema: Mapping[str, Any], path: str, model_name: str) -> Any:
    prop_type = prop_schema.get("type")

    if prop_type == "string":
        enum = prop_schema.get("enum")
        if enum is None:
            return str
        if not enum:
            raise SchemaConversionError(
                f'Empty enum array for property "{path}"',
                schema_type="string",
                property_path=path,
            )
        return Literal[tuple(enum)]

    if prop_type == "number":
        return float

    if prop_type == "boolean":
        return bool

    if prop_type == "array":
        items = prop_schema.get("items")
        if not items:
            raise SchemaConversionError(
                f'Array type missing "items" definition for property "{path}"',
                schema_type="array",
                property_path=path,
            )
        return list[_property_type(items, f"{path}[]", model_name)]

    if prop_type == "object":
        nested_name = model_name + "_" + "".join(
            part.capitalize() for part in path.replace("[]", "_item").split(".")
        )
        nested = _object_model(prop_schema, nested_name, path)
        return nested if nested is not None else dict[str, Any]

    raise SchemaConversionError(
        f'Unsupported JSON Schema type "{prop_type}" for property "{path}". '
        "Supported types: string, number, boolean, array, object",
        schema_type=prop_type,
        property_path=path,
    )
