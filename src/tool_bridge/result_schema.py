"""
Forced result schema for typed conversation turns.

The builder derives a ``json_schema`` response format from a pydantic model or
dataclass, and parses the model's answer back into that type.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Type, TypeVar

from pydantic import TypeAdapter

from tool_bridge import _typing
from tool_bridge.declarations import split_prop
from tool_bridge.errors import CastError, UnsupportedResultTypeError

__all__ = ["ResultSchemaBuilder", "check_result_type"]

T = TypeVar("T")


def _bare(annotation: Any) -> tuple[Any, bool]:
    return _typing.unwrap_optional(split_prop(annotation)[0])


def _enum_schema(tp: type[Enum]) -> dict[str, Any]:
    """Leaf schema listing the member values of *tp*."""
    values = [member.value for member in tp]
    if all(isinstance(v, str) for v in values):
        json_type = "string"
    elif all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        json_type = "integer"
    else:
        values = [member.name for member in tp]
        json_type = "string"
    return {"type": json_type, "enum": values}


def _is_enum(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, Enum)


def check_result_type(result_type: Any) -> None:
    """Reject result types that cannot be expressed as a forced JSON object."""
    if _typing.is_collection(result_type):
        raise UnsupportedResultTypeError(
            "Collection result types are not supported; wrap the collection in a model"
        )
    if not _typing.is_composite(result_type):
        raise UnsupportedResultTypeError(
            f"Result type must be a pydantic model or dataclass; got {result_type!r}"
        )


class ResultSchemaBuilder:
    """
    Builds ``{"type": "json_schema", "json_schema": {...}}`` response formats.

    Args:
        strict: Value of ``json_schema.strict``.
        additional_properties: ``additionalProperties`` on every object node.
        require_all_fields: List every field as required. When false, only
            fields that are neither ``Optional`` nor defaulted are required.
    """

    def __init__(
        self,
        strict: bool = True,
        additional_properties: bool = False,
        *,
        require_all_fields: bool = True,
    ) -> None:
        self.strict = strict
        self.additional_properties = additional_properties
        self.require_all_fields = require_all_fields

    def build(self, result_type: type) -> dict[str, Any]:
        check_result_type(result_type)
        return {
            "type": "json_schema",
            "json_schema": {
                "name": result_type.__name__.lower(),
                "schema": self.object_schema(result_type),
                "strict": self.strict,
            },
        }

    def object_schema(self, tp: type, _stack: tuple[type, ...] = ()) -> dict[str, Any]:
        if tp in _stack:
            raise UnsupportedResultTypeError(
                f"Recursive result type '{tp.__name__}' cannot be expressed as a schema"
            )
        stack = _stack + (tp,)

        properties: dict[str, Any] = {}
        required: list[str] = []
        for field in _typing.public_fields(tp):
            annotation, nullable = _bare(field.annotation)
            key = field.name.lower()
            properties[key] = self._property_schema(annotation, stack)
            if self.require_all_fields or not (nullable or field.has_default):
                required.append(key)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
            "additionalProperties": self.additional_properties,
        }

    def _property_schema(self, annotation: Any, stack: tuple[type, ...]) -> dict[str, Any]:
        if _typing.is_sequence(annotation):
            item, _ = _bare(_typing.sequence_item(annotation))
            if _typing.is_composite(item):
                items = self.object_schema(item, stack)
            elif _is_enum(item):
                items = _enum_schema(item)
            else:
                items = {"type": _typing.json_type(item)}
            return {"type": "array", "items": items}
        if _typing.is_composite(annotation):
            return self.object_schema(annotation, stack)
        if _is_enum(annotation):
            return _enum_schema(annotation)
        return {"type": _typing.json_type(annotation)}

    def parse(self, result_type: Type[T], text: str) -> T:
        """
        Parse the structured answer into *result_type*.

        Raises:
            CastError: The text is not valid JSON or does not validate.
        """
        try:
            data = _restore_field_names(result_type, json.loads(text))
            return TypeAdapter(result_type).validate_python(data)
        except ValueError as exc:
            raise CastError(text, exc) from exc


def _restore_field_names(tp: Any, data: Any) -> Any:
    """Map the lower-cased wire keys back onto the declared field names."""
    tp, _ = _bare(tp)
    if _is_enum(tp) and isinstance(data, str):
        # Member names are accepted alongside values
        if data in tp.__members__ and data not in [m.value for m in tp]:
            return tp[data]
        return data
    if _typing.is_sequence(tp) and isinstance(data, list):
        item = _typing.sequence_item(tp)
        return [_restore_field_names(item, value) for value in data]
    if not (_typing.is_composite(tp) and isinstance(data, dict)):
        return data

    by_key = {f.name.lower(): f for f in _typing.public_fields(tp)}
    restored: dict[str, Any] = {}
    for key, value in data.items():
        field = by_key.get(key.lower())
        if field is None:
            restored[key] = value
        else:
            restored[field.name] = _restore_field_names(field.annotation, value)
    return restored
