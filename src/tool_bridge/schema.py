"""
Tool schema generation.

Turns the ``@tool`` methods of every registered provider into
:class:`ToolDescriptor` objects and picks up the forced ``@choice`` tool.

A tool's parameters take one of two shapes:

* primitive-only: every parameter is a primitive (bool, numbers, str, dates,
  UUID, enums, optionally wrapped in ``Optional``) and carries a :class:`Prop`;
* single-structured: exactly one parameter, a pydantic model or dataclass whose
  :class:`Prop`-annotated fields become the properties.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from tool_bridge import _typing
from tool_bridge.declarations import Prop, split_prop
from tool_bridge.errors import ConfigurationError
from tool_bridge.registry import ToolMethod, ToolParameter, ToolRegistry, iter_tool_methods
from tool_bridge.types import ParameterSchema, PropertySchema, ToolDescriptor, ToolSchema

__all__ = ["SchemaGenerator", "classify_parameters"]

PRIMITIVE = "primitive"
STRUCTURED = "structured"


def classify_parameters(method_name: str, params: list[ToolParameter]) -> Optional[str]:
    """Return ``"primitive"``, ``"structured"`` or ``None`` for no parameters."""
    if not params:
        return None

    primitive: list[ToolParameter] = []
    structured: list[ToolParameter] = []
    for param in params:
        bare = split_prop(param.annotation)[0]
        if _typing.is_primitive(bare):
            primitive.append(param)
        elif _typing.is_composite(bare):
            structured.append(param)
        else:
            raise ConfigurationError(
                f"Unsupported parameter type for '{param.name}' in tool '{method_name}'"
            )

    if primitive and structured:
        raise ConfigurationError(
            f"Tool '{method_name}' mixes primitive and object parameters. "
            "Use either primitive parameters or a single object parameter."
        )
    if len(structured) > 1:
        raise ConfigurationError(
            f"Tool '{method_name}': only one object parameter supported"
        )
    return STRUCTURED if structured else PRIMITIVE


def _require_description(prop: Prop, what: str) -> str:
    if not prop.description:
        raise ConfigurationError(f"Prop for {what} must have a description")
    return prop.description


def _property(annotation: Any, prop: Prop, what: str) -> PropertySchema:
    return PropertySchema(
        type=_typing.json_type(annotation),
        description=_require_description(prop, what),
        enum=_typing.enum_labels(annotation),
    )


class SchemaGenerator:
    """Builds the :class:`ToolSchema` for a registry."""

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__

    def generate(self, registry: ToolRegistry) -> ToolSchema:
        """
        Generate descriptors for every provider, in registration order.

        Raises:
            ConfigurationError: A declaration is invalid, or a provider
                declares more than one ``@choice`` tool.
            ResolutionError: An instance provider could not be resolved.
        """
        descriptors: list[ToolDescriptor] = []
        choice: Optional[str] = None

        for provider in registry:
            runtime_type = registry.runtime_type(provider)
            methods = list(iter_tool_methods(runtime_type))

            choices = [m for m in methods if m.is_choice]
            if len(choices) > 1:
                raise ConfigurationError(
                    f"Only one @choice tool is allowed per provider; "
                    f"'{provider.name}' declares {len(choices)}"
                )
            if choices:
                if choice is not None:
                    self._log(
                        f"Forced choice '{choice}' replaced by '{choices[0].name}' "
                        f"from provider {provider.name}",
                        logging.WARNING,
                    )
                choice = choices[0].name

            for method in methods:
                descriptors.append(self.describe(method))

        self._log(
            f"Generated {len(descriptors)} tool descriptor(s), choice={choice}",
            logging.DEBUG,
        )
        return ToolSchema(descriptors=tuple(descriptors), choice=choice)

    def describe(self, method: ToolMethod) -> ToolDescriptor:
        """Build the descriptor for a single ``@tool`` method."""
        if not method.spec.description:
            raise ConfigurationError(f"Tool '{method.name}' must have a description")

        params = method.parameters()
        shape = classify_parameters(method.name, params)
        if shape == PRIMITIVE:
            parameters = self._primitive_parameters(method.name, params)
        elif shape == STRUCTURED:
            parameters = self._structured_parameters(method.name, params[0])
        else:
            parameters = ParameterSchema()

        return ToolDescriptor(
            name=method.name,
            description=method.spec.description,
            parameters=parameters,
            strict=method.spec.strict,
            additional_properties=method.spec.additional_properties,
        )

    def _primitive_parameters(
        self, method_name: str, params: list[ToolParameter]
    ) -> ParameterSchema:
        properties: dict[str, PropertySchema] = {}
        required: list[str] = []

        for param in params:
            annotation, prop = split_prop(param.annotation)
            if prop is None:
                if param.has_default:
                    continue
                raise ConfigurationError(
                    f"Declare a Prop for parameter '{param.name}' of tool "
                    f"'{method_name}', give it a default, or make the tool parameterless"
                )
            properties[param.name] = _property(
                annotation, prop, f"parameter '{param.name}' of '{method_name}'"
            )
            if prop.required:
                required.append(param.name)

        return ParameterSchema(properties=properties, required=tuple(required))

    def _structured_parameters(
        self, method_name: str, param: ToolParameter
    ) -> ParameterSchema:
        model, _ = _typing.unwrap_optional(split_prop(param.annotation)[0])
        properties: dict[str, PropertySchema] = {}
        required: list[str] = []

        for field in _typing.public_fields(model):
            annotation, prop = split_prop(field.annotation)
            if prop is None:
                continue
            if not _typing.is_primitive(annotation):
                self._log(
                    f"Skipping non-primitive field '{model.__name__}.{field.name}' "
                    f"of tool '{method_name}'",
                    logging.WARNING,
                )
                continue
            properties[field.name] = _property(
                annotation, prop, f"field '{model.__name__}.{field.name}'"
            )
            if prop.required:
                required.append(field.name)

        return ParameterSchema(properties=properties, required=tuple(required))

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")
