"""Type helpers shared by the schema generator, result builder and dispatcher."""

from __future__ import annotations

import dataclasses
import types
from collections.abc import Sequence as AbcSequence
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Union, get_args, get_origin, get_type_hints
from uuid import UUID

from pydantic import BaseModel

PRIMITIVE_TYPES: tuple[type, ...] = (
    bool,
    int,
    float,
    Decimal,
    str,
    datetime,
    date,
    time,
    UUID,
)

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, AbcSequence)


@dataclass(frozen=True)
class FieldInfo:
    name: str
    annotation: Any
    has_default: bool


def unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """``Optional[X]`` -> ``(X, True)``; anything else -> ``(tp, False)``."""
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0], True
    return tp, False


def is_primitive(tp: Any) -> bool:
    tp, _ = unwrap_optional(tp)
    return isinstance(tp, type) and (issubclass(tp, Enum) or issubclass(tp, PRIMITIVE_TYPES))


def is_sequence(tp: Any) -> bool:
    tp, _ = unwrap_optional(tp)
    if tp in (list, tuple, set, frozenset):
        return True
    return get_origin(tp) in _SEQUENCE_ORIGINS


def is_collection(tp: Any) -> bool:
    tp, _ = unwrap_optional(tp)
    return is_sequence(tp) or tp is dict or get_origin(tp) is dict


def sequence_item(tp: Any) -> Any:
    tp, _ = unwrap_optional(tp)
    args = get_args(tp)
    return args[0] if args else str


def is_composite(tp: Any) -> bool:
    tp, _ = unwrap_optional(tp)
    return isinstance(tp, type) and (
        issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp)
    )


def json_type(tp: Any) -> str:
    """Map a Python type to its JSON Schema type name."""
    tp, _ = unwrap_optional(tp)
    if is_sequence(tp):
        return "array"
    if not isinstance(tp, type):
        return "object"
    # bool before int: bool is an int subclass
    if issubclass(tp, bool):
        return "boolean"
    if issubclass(tp, Enum):
        return "integer"
    if issubclass(tp, int):
        return "integer"
    if issubclass(tp, (float, Decimal)):
        return "number"
    if issubclass(tp, (str, datetime, date, time, UUID)):
        return "string"
    return "object"


def enum_labels(tp: Any) -> tuple[str, ...] | None:
    tp, _ = unwrap_optional(tp)
    if isinstance(tp, type) and issubclass(tp, Enum):
        return tuple(member.name for member in tp)
    return None


def public_fields(tp: type) -> list[FieldInfo]:
    """Public fields of a pydantic model or dataclass, in declaration order."""
    hints = get_type_hints(tp, include_extras=True)
    fields: list[FieldInfo] = []
    if issubclass(tp, BaseModel):
        for name, field in tp.model_fields.items():
            if name.startswith("_"):
                continue
            fields.append(
                FieldInfo(name, hints.get(name, field.annotation), not field.is_required())
            )
    elif dataclasses.is_dataclass(tp):
        for field in dataclasses.fields(tp):
            if field.name.startswith("_"):
                continue
            has_default = (
                field.default is not dataclasses.MISSING
                or field.default_factory is not dataclasses.MISSING
            )
            fields.append(FieldInfo(field.name, hints.get(field.name, field.type), has_default))
    return fields
