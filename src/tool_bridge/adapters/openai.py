"""OpenAI chat-completions transport."""

from __future__ import annotations

import logging
from typing import Any, Optional, Self

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from tool_bridge.adapters.base import BaseTransport
from tool_bridge.errors import ConfigurationError
from tool_bridge.events import EventSink


class OpenAITransport(BaseTransport):
    """
    Sends chat-completion requests through ``AsyncOpenAI``.

    Use ``OpenAITransport.from_client`` when you already have an ``AsyncOpenAI`` instance.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 0,
        event_sink: Optional[EventSink] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(event_sink=event_sink, logger=logger, name=name)
        if not api_key:
            raise ConfigurationError("An API key is required to call the completion endpoint")
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    @classmethod
    def from_client(
        cls,
        client: AsyncOpenAI,
        *,
        event_sink: Optional[EventSink] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Build a transport around an already-configured ``AsyncOpenAI`` client.
        """
        if not isinstance(client, AsyncOpenAI):
            raise TypeError(
                f"{cls.__name__}.from_client expects AsyncOpenAI; got {type(client).__name__}"
            )
        if not client.api_key:
            raise ConfigurationError("An API key is required to call the completion endpoint")

        self = cls.__new__(cls)  # bypass __init__
        BaseTransport.__init__(self, event_sink=event_sink, logger=logger, name=name)
        self._client = client
        return self

    async def _complete_impl(self, payload: dict[str, Any]) -> ChatCompletion:
        return await self._client.chat.completions.create(**payload)
