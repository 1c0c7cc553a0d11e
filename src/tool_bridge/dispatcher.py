"""
Tool dispatch: turn a model-issued tool call into a local method invocation.
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from functools import lru_cache
from typing import Any, Optional

from pydantic import ConfigDict, JsonValue, TypeAdapter

from tool_bridge import _typing
from tool_bridge.declarations import split_prop
from tool_bridge.errors import ArgumentError, ToolExecutionError
from tool_bridge.registry import ToolMethod, ToolParameter, ToolRegistry, iter_tool_methods
from tool_bridge.types import ToolCallRequest, ToolProvider

__all__ = ["ToolDispatcher"]

_ARGUMENTS_ADAPTER: TypeAdapter[dict[str, JsonValue]] = TypeAdapter(dict[str, JsonValue])


@lru_cache(maxsize=None)
def _adapter(annotation: Any) -> TypeAdapter[Any]:
    # Numbers sent for str parameters are accepted as their text
    return TypeAdapter(annotation, config=ConfigDict(coerce_numbers_to_str=True))


def _coerce(annotation: Any, value: JsonValue) -> Any:
    """Coerce a JSON value to a primitive parameter type."""
    tp, nullable = _typing.unwrap_optional(annotation)
    if value is None and nullable:
        return None
    if isinstance(tp, type) and issubclass(tp, Enum) and isinstance(value, str):
        if value in tp.__members__:
            return tp[value]
    return _adapter(annotation).validate_python(value)


class ToolDispatcher:
    """
    Resolves tool calls against a registry and runs them.

    Providers are scanned in registration order and the first one exposing a
    ``@tool`` method with the requested name wins, even if a later provider
    declares a tool with the same name.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__
        self._catalog: Optional[list[tuple[ToolProvider, dict[str, ToolMethod]]]] = None

    def _methods(self) -> list[tuple[ToolProvider, dict[str, ToolMethod]]]:
        if self._catalog is None:
            self._catalog = [
                (
                    provider,
                    {
                        m.name: m
                        for m in iter_tool_methods(self.registry.runtime_type(provider))
                    },
                )
                for provider in self.registry
            ]
        return self._catalog

    def find(self, tool_name: str) -> Optional[tuple[ToolProvider, ToolMethod]]:
        """Locate the provider and method serving *tool_name*."""
        for provider, methods in self._methods():
            method = methods.get(tool_name)
            if method is not None:
                return provider, method
        return None

    async def execute(self, request: ToolCallRequest) -> Any:
        """
        Run one tool call.

        Returns:
            The tool's return value (awaited if it returned an awaitable), or
            None when no provider exposes the requested tool.

        Raises:
            ResolutionError: The provider instance could not be obtained.
            ArgumentError: The payload could not be deserialized or coerced.
            ToolExecutionError: The tool raised.
        """
        match = self.find(request.name)
        if match is None:
            self._log(f"No provider exposes tool '{request.name}'", logging.WARNING)
            return None

        provider, method = match
        self._log(
            f"Dispatching '{request.name}' (call {request.id}) to {provider.name}",
            logging.DEBUG,
        )
        target = self.registry.resolve_instance(provider)
        kwargs = self._arguments(method, request)
        return await self._invoke(target, method, kwargs)

    def _arguments(self, method: ToolMethod, request: ToolCallRequest) -> dict[str, Any]:
        params = method.parameters()
        if not params:
            return {}

        first = _typing.unwrap_optional(split_prop(params[0].annotation)[0])[0]
        if len(params) == 1 and _typing.is_composite(first):
            try:
                value = TypeAdapter(first).validate_json(request.arguments or "")
            except ValueError as exc:
                raise ArgumentError(
                    f"deserialization failed for tool '{method.name}'", exc
                ) from exc
            return {params[0].name: value}

        try:
            payload = _ARGUMENTS_ADAPTER.validate_json(request.arguments or "{}")
        except ValueError as exc:
            raise ArgumentError(
                f"deserialization failed for tool '{method.name}'", exc
            ) from exc
        return {p.name: self._argument(method, p, payload) for p in params}

    def _argument(
        self, method: ToolMethod, param: ToolParameter, payload: dict[str, JsonValue]
    ) -> Any:
        if param.name not in payload:
            return param.default if param.has_default else None
        annotation = split_prop(param.annotation)[0]
        try:
            return _coerce(annotation, payload[param.name])
        except ValueError as exc:
            raise ArgumentError(
                f"type cast failed for parameter '{param.name}' of tool '{method.name}'",
                exc,
            ) from exc

    async def _invoke(self, target: Any, method: ToolMethod, kwargs: dict[str, Any]) -> Any:
        func = getattr(target, method.name)
        try:
            result = func(**kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            raise ToolExecutionError(
                f"method execution failed: '{method.name}'", exc
            ) from exc
        return result

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")
