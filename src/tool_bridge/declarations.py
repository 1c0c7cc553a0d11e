"""
Declarations that make methods and fields visible to the model.

A tool provider is an ordinary class. Methods decorated with :func:`tool` become
tools; parameters and structured-argument fields describe themselves with a
:class:`Prop` marker inside ``typing.Annotated``::

    class Weather:
        @tool("Get the current weather for a city")
        def get_weather(
            self,
            city: Annotated[str, Prop("city name", required=True)],
            unit: Unit = Unit.celsius,
        ) -> str: ...

Nothing here inspects anything; the markers are read by the schema generator
when the client is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar, get_args, get_origin, Annotated

__all__ = ["ToolSpec", "Prop", "tool", "choice", "get_tool_spec", "is_choice", "split_prop"]

F = TypeVar("F")

TOOL_ATTR = "__tool_bridge_spec__"
CHOICE_ATTR = "__tool_bridge_choice__"


@dataclass(frozen=True)
class ToolSpec:
    """Method-level declaration attached by :func:`tool`."""

    description: str
    additional_properties: bool = False
    strict: bool = True


@dataclass(frozen=True)
class Prop:
    """Parameter or field declaration used inside ``Annotated[...]``."""

    description: str
    required: bool = False


def _function_of(obj: Any) -> Any:
    if isinstance(obj, (staticmethod, classmethod)):
        return obj.__func__
    return obj


def tool(
    description: str,
    *,
    additional_properties: bool = False,
    strict: bool = True,
) -> Callable[[F], F]:
    """Mark a method as a tool.

    Args:
        description: What the tool does; shown to the model.
        additional_properties: Value of ``additionalProperties`` in the
            parameter schema.
        strict: Ask the endpoint to enforce the parameter schema strictly.
    """
    spec = ToolSpec(
        description=description,
        additional_properties=additional_properties,
        strict=strict,
    )

    def decorator(fn: F) -> F:
        setattr(_function_of(fn), TOOL_ATTR, spec)
        return fn

    return decorator


def choice(fn: F) -> F:
    """Force the endpoint to call this tool instead of choosing freely."""
    setattr(_function_of(fn), CHOICE_ATTR, True)
    return fn


def get_tool_spec(obj: Any) -> Optional[ToolSpec]:
    return getattr(_function_of(obj), TOOL_ATTR, None)


def is_choice(obj: Any) -> bool:
    return bool(getattr(_function_of(obj), CHOICE_ATTR, False))


def split_prop(annotation: Any) -> tuple[Any, Optional[Prop]]:
    """Strip ``Annotated`` and return the bare type with its :class:`Prop`, if any."""
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        for item in metadata:
            if isinstance(item, Prop):
                return base, item
        return base, None
    return annotation, None
