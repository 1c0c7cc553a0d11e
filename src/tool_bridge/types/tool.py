"""
Provider-neutral dataclasses for client-side tool use.

Descriptors are plain data; `to_wire()` / `from_wire()` convert them to the
chat-completion ``tools`` format and back.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

__all__ = [
    "ToolCallRequest",
    "ToolCallResult",
    "ToolProvider",
    "PropertySchema",
    "ParameterSchema",
    "ToolDescriptor",
    "ToolSchema",
]


@dataclass(slots=True)
class ToolCallRequest:
    """A model-agnostic request emitted by the LLM to call a local tool."""
    id: str
    name: str
    arguments: str              # raw JSON text, as sent by the endpoint

    @classmethod
    def from_openai(cls, tool_call: Any) -> "ToolCallRequest":
        """Build from a ``ChatCompletionMessageToolCall``."""
        raw_args = tool_call.function.arguments
        if isinstance(raw_args, dict):
            raw_args = json.dumps(raw_args)
        return cls(id=tool_call.id, name=tool_call.function.name, arguments=raw_args or "")


@dataclass(slots=True)
class ToolCallResult:
    """Payload to send back to the LLM after the tool finished running."""
    id: str                     # must match the request id
    content: str


@dataclass(frozen=True, slots=True)
class ToolProvider:
    """A registered class hosting one or more tools."""
    name: str
    type: type
    is_static: bool = False


@dataclass(frozen=True)
class PropertySchema:
    type: str
    description: str = ""
    enum: Optional[tuple[str, ...]] = None

    def to_wire(self) -> dict[str, Any]:
        prop: dict[str, Any] = {"type": self.type}
        if self.description:
            prop["description"] = self.description
        if self.enum is not None:
            prop["enum"] = list(self.enum)
        return prop

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "PropertySchema":
        enum = data.get("enum")
        return cls(
            type=data["type"],
            description=data.get("description", ""),
            enum=tuple(enum) if enum is not None else None,
        )


@dataclass(frozen=True)
class ParameterSchema:
    """Object schema for a tool's arguments. Empty for parameterless tools."""
    properties: dict[str, PropertySchema] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.properties


@dataclass(frozen=True)
class ToolDescriptor:
    """One tool as advertised to the model."""
    name: str
    description: str
    parameters: ParameterSchema = field(default_factory=ParameterSchema)
    strict: bool = True
    additional_properties: bool = False

    def to_wire(self) -> dict[str, Any]:
        """
        Export in chat-completion function calling format.

        Returns::

            {
                "type": "function",
                "function": {"name": ..., "strict": ..., "description": ..., "parameters": ...}
            }
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "strict": self.strict,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {
                        name: prop.to_wire()
                        for name, prop in self.parameters.properties.items()
                    },
                    "required": list(self.parameters.required),
                    "additionalProperties": self.additional_properties,
                },
            },
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "ToolDescriptor":
        func = data["function"]
        params = func.get("parameters") or {}
        return cls(
            name=func["name"],
            description=func.get("description", ""),
            strict=func.get("strict", True),
            additional_properties=params.get("additionalProperties", False),
            parameters=ParameterSchema(
                properties={
                    name: PropertySchema.from_wire(prop)
                    for name, prop in (params.get("properties") or {}).items()
                },
                required=tuple(params.get("required") or ()),
            ),
        )


@dataclass(frozen=True)
class ToolSchema:
    """Everything the schema generator derives from a registry."""
    descriptors: tuple[ToolDescriptor, ...] = ()
    choice: Optional[str] = None

    def tool_choice(self) -> Union[str, dict[str, Any]]:
        """``"auto"`` unless a tool is forced."""
        if self.choice is None:
            return "auto"
        return {"type": "function", "function": {"name": self.choice}}

    def to_wire(self) -> list[dict[str, Any]]:
        return [d.to_wire() for d in self.descriptors]

    def names(self) -> list[str]:
        return [d.name for d in self.descriptors]
