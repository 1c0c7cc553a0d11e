"""
Capability registry: the set of tool providers a client can dispatch to.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, get_type_hints

from tool_bridge.declarations import ToolSpec, get_tool_spec, is_choice
from tool_bridge.errors import ConfigurationError, ResolutionError
from tool_bridge.types import ToolProvider

__all__ = ["Resolver", "ToolMethod", "ToolParameter", "ToolRegistry", "iter_tool_methods"]

# Dependency resolution hook: returns an instance of the requested type, or None.
Resolver = Callable[[type], Optional[object]]


@dataclass(frozen=True)
class ToolParameter:
    name: str
    annotation: Any
    default: Any = inspect.Parameter.empty

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


@dataclass(frozen=True)
class ToolMethod:
    """A ``@tool`` method found on a provider class."""

    name: str
    function: Callable[..., Any]
    kind: str  # "instance", "static" or "class"
    spec: ToolSpec
    is_choice: bool = False

    def parameters(self) -> list[ToolParameter]:
        """Declared parameters, without ``self``/``cls``, with resolved annotations."""
        try:
            hints = get_type_hints(self.function, include_extras=True)
        except NameError as exc:
            raise ConfigurationError(
                f"Cannot resolve annotations of tool '{self.name}'", exc
            ) from exc

        params = list(inspect.signature(self.function).parameters.values())
        if self.kind != "static" and params:
            params = params[1:]

        result: list[ToolParameter] = []
        for param in params:
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                raise ConfigurationError(
                    f"Tool '{self.name}' cannot declare *args or **kwargs"
                )
            result.append(
                ToolParameter(
                    name=param.name,
                    annotation=hints.get(param.name, str),
                    default=param.default,
                )
            )
        return result


def iter_tool_methods(cls: type) -> Iterator[ToolMethod]:
    """Yield ``@tool`` methods of *cls* in definition order, base classes first."""
    seen: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for attr_name, attr in vars(klass).items():
            seen[attr_name] = attr

    for attr_name, attr in seen.items():
        spec = get_tool_spec(attr)
        if spec is None:
            continue
        if isinstance(attr, staticmethod):
            kind, function = "static", attr.__func__
        elif isinstance(attr, classmethod):
            kind, function = "class", attr.__func__
        elif inspect.isfunction(attr):
            kind, function = "instance", attr
        else:
            continue
        yield ToolMethod(
            name=attr_name,
            function=function,
            kind=kind,
            spec=spec,
            is_choice=is_choice(attr),
        )


def _looks_static(cls: type) -> bool:
    methods = list(iter_tool_methods(cls))
    return bool(methods) and all(m.kind != "instance" for m in methods)


def _has_parameterless_constructor(cls: type) -> bool:
    if inspect.isabstract(cls):
        return False
    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError):
        return False
    return all(
        p.default is not p.empty or p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
        for p in sig.parameters.values()
    )


class ToolRegistry:
    """
    Ordered, de-duplicated set of tool providers.

    Providers whose constructor needs arguments are obtained from *resolver*.
    The registry is frozen by ``ChatBuilder.build()`` and read-only afterwards.
    """

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self._resolver = resolver
        self._providers: list[ToolProvider] = []
        self._frozen = False
        self._runtime_types: dict[type, type] = {}
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__

    def register(self, provider_type: type, static: Optional[bool] = None) -> ToolProvider:
        """
        Add a provider class unless it is already registered.

        Args:
            provider_type: Class hosting ``@tool`` methods.
            static: Whether tools are called on the class itself. ``None``
                detects it: a class whose tools are all static or class
                methods is static.

        Returns:
            The new or the already registered ToolProvider.
        """
        if not isinstance(provider_type, type):
            raise ConfigurationError(
                f"Tool providers must be classes; got {type(provider_type).__name__}"
            )
        if self._frozen:
            raise ConfigurationError("Registry is read-only once the client is built")

        for existing in self._providers:
            if existing.name == provider_type.__name__ and existing.type is provider_type:
                self._log(f"Provider {existing.name} already registered", logging.DEBUG)
                return existing

        provider = ToolProvider(
            name=provider_type.__name__,
            type=provider_type,
            is_static=_looks_static(provider_type) if static is None else static,
        )
        self._providers.append(provider)
        self._log(
            f"Registered provider {provider.name} (static={provider.is_static})",
            logging.DEBUG,
        )
        return provider

    def freeze(self) -> None:
        self._frozen = True

    @property
    def providers(self) -> tuple[ToolProvider, ...]:
        return tuple(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self) -> Iterator[ToolProvider]:
        return iter(tuple(self._providers))

    def resolve_instance(self, provider: ToolProvider) -> Any:
        """
        Return the invocation target for *provider*.

        Static providers are never instantiated: the class itself is returned.
        Otherwise the class is constructed directly when its constructor takes
        no arguments, or obtained from the resolver.

        Raises:
            ResolutionError: No resolver is configured, the resolver returned
                nothing, or the constructor raised.
        """
        if provider.is_static:
            return provider.type

        if _has_parameterless_constructor(provider.type):
            try:
                return provider.type()
            except Exception as exc:
                raise ResolutionError(
                    f"Unable to construct tool provider '{provider.name}'", exc
                ) from exc

        if self._resolver is None:
            raise ResolutionError(
                f"Tool provider '{provider.name}' needs constructor arguments "
                "but no resolver was configured"
            )
        instance = self._resolver(provider.type)
        if instance is None:
            raise ResolutionError(
                f"Unable to locate service of type '{provider.name}'"
            )
        return instance

    def runtime_type(self, provider: ToolProvider) -> type:
        """The concrete class whose ``@tool`` methods are exposed."""
        if provider.is_static or _has_parameterless_constructor(provider.type):
            return provider.type
        # Only a resolver can hand back a subclass; its type is looked up once
        if provider.type not in self._runtime_types:
            self._runtime_types[provider.type] = type(self.resolve_instance(provider))
        return self._runtime_types[provider.type]

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")
