"""Chat request, response and settings types."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Generic, Optional, TypeVar

from tool_bridge.providers import Provider, get_api_key

T = TypeVar("T")

# Type alias for chat messages
ChatMessage = dict[str, Any]

ROLES = frozenset({"system", "user", "assistant", "tool"})


@dataclass
class Settings:
    """Client configuration.

    Attributes:
        model: Model identifier sent with every request.
        api_key: Bearer token for the completion endpoint.
        temperature: Sampling temperature.
        max_rounds: Upper bound on tool-call rounds per conversation turn.
            ``None`` disables the bound.
        require_all_fields: List every result field as required in the forced
            result schema, regardless of nullability.
        raise_tool_errors: Propagate tool argument/execution errors instead of
            reporting them to the model as a tool message.
        base_url: Override for the endpoint base URL.
        timeout: Per-request timeout in seconds handed to the SDK client.
        provider: Endpoint family used for the default transport. ``None``
            means OpenAI.
        force_choice_every_round: Keep forcing the ``@choice`` tool on every
            follow-up request instead of only the opening one. The loop then
            ends only through ``max_rounds``.
    """

    model: str
    api_key: Optional[str] = None
    temperature: float = 0.2
    max_rounds: Optional[int] = 10
    require_all_fields: bool = True
    raise_tool_errors: bool = False
    base_url: Optional[str] = None
    timeout: float = 60.0
    provider: Optional[Provider] = None
    force_choice_every_round: bool = False

    @classmethod
    def from_env(cls, provider: Provider, model: str, **overrides: Any) -> "Settings":
        """Build settings, pulling the API key from the environment (or ``.env``)."""
        api_key = overrides.pop("api_key", None) or get_api_key(provider)
        return cls(model=model, api_key=api_key, provider=provider, **overrides)

    def copy(self, **kwargs: Any) -> "Settings":
        """Create a copy with optional overrides."""
        return replace(self, **kwargs)


@dataclass
class ChatRequest:
    """A conversation turn as handed to ``ChatClient.create``.

    ``strict`` and ``additional_properties`` only affect the forced result
    schema used by typed turns.
    """

    messages: list[ChatMessage] = field(default_factory=list)
    strict: bool = True
    additional_properties: bool = False
    log_model_events: bool = False

    def __post_init__(self) -> None:
        for msg in self.messages:
            role = msg.get("role")
            if role not in ROLES:
                raise ValueError(f"Unsupported message role: {role!r}")


@dataclass
class ToolCallResponse(Generic[T]):
    """Outcome of a conversation turn."""

    content: str
    parsed: Optional[T] = None
    is_parsed: bool = False

    def __repr__(self) -> str:
        preview = self.content[:75] + "..." if len(self.content) > 75 else self.content
        return (
            f"{self.__class__.__name__}(content={preview!r}, "
            f"is_parsed={self.is_parsed})"
        )
