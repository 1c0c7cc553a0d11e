"""Tests for tool schema generation."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

import pytest
from pydantic import BaseModel

from tool_bridge.declarations import Prop, choice, tool
from tool_bridge.errors import ConfigurationError
from tool_bridge.registry import ToolRegistry
from tool_bridge.schema import SchemaGenerator
from tool_bridge.types import ToolDescriptor


class Unit(Enum):
    celsius = 1
    fahrenheit = 2


class NoTools:
    def helper(self) -> str:
        return "not a tool"


class Clock:
    @staticmethod
    @tool("returns current time")
    def GetTime() -> str:
        return "12:00"


class Weather:
    @tool("Get the weather for a city")
    def get_weather(
        self,
        city: Annotated[str, Prop("city name", required=True)],
        unit: Annotated[Unit, Prop("temperature unit")] = Unit.celsius,
        verbose: bool = False,
    ) -> str:
        return f"{city}: 15"


class CityLookup:
    @tool("Look up a city")
    def lookup_city(self, city: Annotated[str, Prop("city name", required=True)]) -> str:
        return city


@dataclass
class Query:
    text: Annotated[str, Prop("query text", required=True)]


class Mixed:
    @tool("mixed parameters")
    def search(self, query: Query, limit: Annotated[int, Prop("max results")]) -> list:
        return []


@dataclass
class Address:
    street: Annotated[str, Prop("street name", required=True)]
    number: Annotated[int, Prop("house number")]
    note: str = ""


class Customer(BaseModel):
    name: Annotated[str, Prop("full name", required=True)]
    balance: Annotated[Decimal, Prop("account balance")]
    vip: Annotated[Optional[bool], Prop("is vip")] = None
    address: Annotated[Optional[Address], Prop("postal address")] = None
    internal_id: int = 0


class TwoObjects:
    @tool("two object parameters")
    def merge(self, first: Address, second: Customer) -> None:
        return None


class MissingProp:
    @tool("primitive without declaration")
    def lookup(self, key: str) -> str:
        return key


class EmptyPropDescription:
    @tool("empty prop description")
    def lookup(self, key: Annotated[str, Prop("")]) -> str:
        return key


class EmptyToolDescription:
    @tool("")
    def ping(self) -> str:
        return "pong"


class UnsupportedParam:
    @tool("list parameter")
    def total(self, values: list[int]) -> int:
        return sum(values)


class Accounts:
    @tool("Create a customer")
    def create_customer(self, customer: Customer) -> str:
        return customer.name

    @tool("Record an event", strict=False, additional_properties=True)
    def record(
        self,
        when: Annotated[datetime, Prop("event time", required=True)],
        amount: Annotated[float, Prop("amount")],
        paid: Annotated[bool, Prop("paid flag")],
    ) -> None:
        return None


class Forced:
    @choice
    @tool("always call me")
    def must_call(self) -> str:
        return "ok"


class OtherForced:
    @tool("also forced")
    @choice
    def also_forced(self) -> str:
        return "ok"


class TwoChoices:
    @choice
    @tool("first")
    def one(self) -> None:
        return None

    @choice
    @tool("second")
    def two(self) -> None:
        return None


def generate(*providers: type):
    registry = ToolRegistry()
    for provider in providers:
        registry.register(provider)
    return SchemaGenerator().generate(registry)


class TestSchemaGeneration:
    """Descriptor generation from declared methods."""

    def test_provider_without_tools_yields_nothing(self):
        schema = generate(NoTools)

        assert schema.descriptors == ()
        assert schema.choice is None
        assert schema.tool_choice() == "auto"

    def test_parameterless_static_tool(self):
        schema = generate(Clock)

        assert schema.names() == ["GetTime"]
        wire = schema.to_wire()[0]
        assert wire["type"] == "function"
        assert wire["function"]["name"] == "GetTime"
        assert wire["function"]["description"] == "returns current time"
        assert wire["function"]["strict"] is True
        assert wire["function"]["parameters"] == {
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        }

    def test_primitive_parameters(self):
        """A required string parameter and an enum; undeclared defaults are skipped."""
        descriptor = generate(Weather).descriptors[0]
        params = descriptor.to_wire()["function"]["parameters"]

        assert params["properties"]["city"] == {"type": "string", "description": "city name"}
        assert params["properties"]["unit"] == {
            "type": "integer",
            "description": "temperature unit",
            "enum": ["celsius", "fahrenheit"],
        }
        assert "verbose" not in params["properties"]
        assert params["required"] == ["city"]

    def test_single_required_city(self):
        descriptor = generate(CityLookup).descriptors[0]
        params = descriptor.to_wire()["function"]["parameters"]

        assert params["properties"] == {"city": {"type": "string", "description": "city name"}}
        assert params["required"] == ["city"]

    def test_single_structured_parameter(self):
        descriptor = generate(Accounts).descriptors[0]
        params = descriptor.parameters

        assert list(params.properties) == ["name", "balance", "vip"]
        assert params.properties["balance"].type == "number"
        assert params.properties["vip"].type == "boolean"
        assert params.required == ("name",)

    def test_type_map_and_method_flags(self):
        descriptor = generate(Accounts).descriptors[1]

        assert descriptor.name == "record"
        assert descriptor.strict is False
        assert descriptor.additional_properties is True
        types = {name: prop.type for name, prop in descriptor.parameters.properties.items()}
        assert types == {"when": "string", "amount": "number", "paid": "boolean"}

    def test_descriptor_order_follows_registration(self):
        schema = generate(Weather, Clock, Accounts)

        assert schema.names() == ["get_weather", "GetTime", "create_customer", "record"]


class TestSchemaErrors:
    """Invalid declarations fail at generation time."""

    def test_missing_prop_without_default(self):
        with pytest.raises(ConfigurationError, match="key"):
            generate(MissingProp)

    def test_two_object_parameters(self):
        with pytest.raises(ConfigurationError, match="only one object parameter"):
            generate(TwoObjects)

    def test_mixed_parameters(self):
        with pytest.raises(ConfigurationError, match="mixes"):
            generate(Mixed)

    def test_empty_prop_description(self):
        with pytest.raises(ConfigurationError, match="description"):
            generate(EmptyPropDescription)

    def test_empty_tool_description(self):
        with pytest.raises(ConfigurationError, match="description"):
            generate(EmptyToolDescription)

    def test_unsupported_parameter_type(self):
        with pytest.raises(ConfigurationError, match="values"):
            generate(UnsupportedParam)

    def test_two_choices_in_one_provider(self):
        with pytest.raises(ConfigurationError, match="@choice"):
            generate(TwoChoices)


class TestForcedChoice:
    def test_forced_choice(self):
        schema = generate(Clock, Forced)

        assert schema.choice == "must_call"
        assert schema.tool_choice() == {"type": "function", "function": {"name": "must_call"}}

    def test_last_provider_wins(self):
        schema = generate(Forced, OtherForced)

        assert schema.choice == "also_forced"


class TestDescriptorWire:
    def test_round_trip(self):
        original = generate(Weather).descriptors[0]

        restored = ToolDescriptor.from_wire(json.loads(json.dumps(original.to_wire())))

        assert restored.name == original.name
        assert restored.description == original.description
        assert restored.strict == original.strict
        assert set(restored.parameters.required) == set(original.parameters.required)
        assert restored == original


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
