"""Transport base: one chat-completion request per call, no retries."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol

from openai.types.chat import ChatCompletion

from tool_bridge.errors import ToolBridgeError, classify_error
from tool_bridge.events import EventSink, EventType, emit

__all__ = ["Transport", "BaseTransport"]


class Transport(Protocol):
    """What the conversation loop needs from an endpoint."""

    async def complete(
        self, payload: dict[str, Any], *, log_events: bool = False
    ) -> ChatCompletion:
        """Send one chat-completion request and return the parsed response."""
        ...

    async def aclose(self) -> None:
        ...


class BaseTransport(ABC):
    """
    Abstract base class for SDK-backed transports.

    Subclasses implement ``_complete_impl``; this class handles event
    publication and error classification.
    """

    def __init__(
        self,
        *,
        event_sink: Optional[EventSink] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self.event_sink = event_sink
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__

    @abstractmethod
    async def _complete_impl(self, payload: dict[str, Any]) -> ChatCompletion:
        """
        Provider-specific request.

        Args:
            payload: Chat-completion request body (model, messages, tools, ...).

        Returns:
            The endpoint's answer as a ``ChatCompletion``.
        """
        ...

    async def complete(
        self, payload: dict[str, Any], *, log_events: bool = False
    ) -> ChatCompletion:
        """
        Send a single request.

        Raises:
            TransportError: The endpoint answered with a non-success status or
                could not be reached.
        """
        if log_events:
            emit(self.event_sink, EventType.CALL, payload)

        self._log(f"Sending request for model {payload.get('model')}", logging.DEBUG)
        try:
            response = await self._complete_impl(payload)
        except ToolBridgeError:
            raise
        except Exception as exc:
            raise classify_error(exc, self.logger) from exc

        if log_events:
            emit(self.event_sink, EventType.RESPONSE, response.model_dump(mode="json"))
        return response

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close underlying async HTTP clients to avoid cleanup after the loop closes.
        Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(client, "close", None)
        if close:
            await close()

    async def __aenter__(self) -> "BaseTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
