"""Tests for provider registration and resolution."""

from __future__ import annotations

import pytest

from tool_bridge.declarations import tool
from tool_bridge.errors import ConfigurationError, ResolutionError
from tool_bridge.registry import ToolRegistry, iter_tool_methods


class StaticTools:
    @staticmethod
    @tool("static tool")
    def ping() -> str:
        return "pong"

    @classmethod
    @tool("class tool")
    def name_of(cls) -> str:
        return cls.__name__


class InstanceTools:
    def __init__(self, prefix: str = ">") -> None:
        self.prefix = prefix

    @tool("echo")
    def echo(self) -> str:
        return self.prefix


class NeedsService:
    def __init__(self, repo: dict) -> None:
        self.repo = repo

    @tool("count items")
    def count(self) -> int:
        return len(self.repo)


class BrokenConstructor:
    def __init__(self) -> None:
        raise RuntimeError("boom")

    @tool("never reached")
    def noop(self) -> None:
        return None


class Counted:
    created = 0

    def __init__(self) -> None:
        Counted.created += 1

    @tool("counted tool")
    def hello(self) -> str:
        return "hello"


class SpecialService(NeedsService):
    @tool("only on the subclass")
    def special(self) -> str:
        return "special"


class Base:
    @tool("from base")
    def base_tool(self) -> str:
        return "base"


class Derived(Base):
    @tool("from derived")
    def derived_tool(self) -> str:
        return "derived"

    def plain(self) -> str:
        return "plain"


class TestRegistration:
    def test_register_twice_is_idempotent(self):
        registry = ToolRegistry()

        first = registry.register(InstanceTools)
        second = registry.register(InstanceTools)

        assert first is second
        assert len(registry) == 1

    def test_static_detection(self):
        registry = ToolRegistry()

        assert registry.register(StaticTools).is_static is True
        assert registry.register(InstanceTools).is_static is False

    def test_explicit_static_flag(self):
        registry = ToolRegistry()

        provider = registry.register(InstanceTools, static=True)

        assert provider.is_static is True

    def test_rejects_non_class(self):
        with pytest.raises(ConfigurationError):
            ToolRegistry().register(InstanceTools())

    def test_frozen_registry(self):
        registry = ToolRegistry()
        registry.register(StaticTools)
        registry.freeze()

        with pytest.raises(ConfigurationError, match="read-only"):
            registry.register(InstanceTools)


class TestResolution:
    def test_static_provider_is_the_class(self):
        registry = ToolRegistry()
        provider = registry.register(StaticTools)

        assert registry.resolve_instance(provider) is StaticTools

    def test_parameterless_constructor(self):
        registry = ToolRegistry()
        provider = registry.register(InstanceTools)

        instance = registry.resolve_instance(provider)

        assert isinstance(instance, InstanceTools)
        assert registry.runtime_type(provider) is InstanceTools

    def test_resolver_supplies_instance(self):
        service = NeedsService({"a": 1})
        registry = ToolRegistry(resolver=lambda cls: service if cls is NeedsService else None)
        provider = registry.register(NeedsService)

        assert registry.resolve_instance(provider) is service

    def test_missing_resolver(self):
        registry = ToolRegistry()
        provider = registry.register(NeedsService)

        with pytest.raises(ResolutionError, match="no resolver"):
            registry.resolve_instance(provider)

    def test_resolver_returns_nothing(self):
        registry = ToolRegistry(resolver=lambda cls: None)
        provider = registry.register(NeedsService)

        with pytest.raises(ResolutionError, match="NeedsService"):
            registry.resolve_instance(provider)

    def test_runtime_type_does_not_construct(self):
        Counted.created = 0
        registry = ToolRegistry()
        provider = registry.register(Counted)

        assert registry.runtime_type(provider) is Counted
        assert registry.runtime_type(provider) is Counted
        assert Counted.created == 0

    def test_runtime_type_from_resolver_is_cached(self):
        calls = []

        def resolver(cls):
            calls.append(cls)
            return SpecialService({})

        registry = ToolRegistry(resolver=resolver)
        provider = registry.register(NeedsService)

        assert registry.runtime_type(provider) is SpecialService
        assert registry.runtime_type(provider) is SpecialService
        assert calls == [NeedsService]

    def test_constructor_failure(self):
        registry = ToolRegistry()
        provider = registry.register(BrokenConstructor)

        with pytest.raises(ResolutionError) as excinfo:
            registry.resolve_instance(provider)
        assert isinstance(excinfo.value.original_exc, RuntimeError)


class TestToolDiscovery:
    def test_inherited_tools_in_definition_order(self):
        names = [m.name for m in iter_tool_methods(Derived)]

        assert names == ["base_tool", "derived_tool"]

    def test_method_kinds(self):
        kinds = {m.name: m.kind for m in iter_tool_methods(StaticTools)}

        assert kinds == {"ping": "static", "name_of": "class"}

    def test_parameters_skip_self(self):
        method = next(iter_tool_methods(InstanceTools))

        assert method.parameters() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
