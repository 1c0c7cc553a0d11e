from __future__ import annotations

import logging
from typing import Any, Optional, Type

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from tool_bridge.adapters import AnthropicTransport, GeminiTransport, OpenAITransport
from tool_bridge.adapters.base import BaseTransport
from tool_bridge.events import EventSink
from tool_bridge.providers import Provider, get_api_key

# map Provider enum to its transport implementation
_TRANSPORT_REGISTRY: dict[Provider, Type[BaseTransport]] = {
    Provider.OPENAI: OpenAITransport,
    Provider.ANTHROPIC: AnthropicTransport,
    Provider.GEMINI: GeminiTransport,
}


def create_transport(
    provider: Provider,
    *,
    api_key: str | None = None,
    client: AsyncOpenAI | AsyncAnthropic | None = None,
    event_sink: Optional[EventSink] = None,
    logger: logging.Logger | None = None,
    **provider_kwargs: Any,
) -> BaseTransport:
    """
    Factory for creating any supported transport.

    Args:
        provider: Which provider to use (OPENAI, ANTHROPIC, GEMINI).
        api_key: Overrides automatic lookup; if omitted, pulled from env.
        client: Optional pre-configured client instance to use.
            - For Provider.OPENAI: an AsyncOpenAI instance
            - For Provider.ANTHROPIC: an AsyncAnthropic instance
            - For Provider.GEMINI: an AsyncOpenAI instance configured with Gemini's base URL
        event_sink: Optional callable receiving call/response events.
        logger: Optional custom logger.
        **provider_kwargs: Any extra args to pass through (base_url, timeout, max_retries).
    """
    try:
        transport_cls = _TRANSPORT_REGISTRY[provider]
    except KeyError as exc:
        raise ValueError(f"Unsupported provider: {provider}") from exc

    if client is not None:  # use caller-supplied client verbatim
        return transport_cls.from_client(client, event_sink=event_sink, logger=logger)

    key = api_key or get_api_key(provider)
    return transport_cls(api_key=key, event_sink=event_sink, logger=logger, **provider_kwargs)
