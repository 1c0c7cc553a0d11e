"""
Chat client that lets the model call local tools until it produces an answer.

Typical use::

    client = (
        ChatBuilder(Settings.from_env(Provider.OPENAI, "gpt-4o-mini"))
        .add_tool(Clock)
        .add_tool(Weather)
        .build()
    )
    response = await client.create(
        ChatRequest(messages=[{"role": "user", "content": "What time is it?"}])
    )
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence, Type, TypeVar, Union, overload

from openai.types.chat import ChatCompletion
from openai.types.chat.chat_completion import Choice
from pydantic_core import to_jsonable_python

from tool_bridge.adapters import Transport
from tool_bridge.dispatcher import ToolDispatcher
from tool_bridge.errors import (
    ArgumentError,
    ConfigurationError,
    MaxRoundsExceededError,
    ProtocolError,
    ToolExecutionError,
)
from tool_bridge.events import EventSink
from tool_bridge.factory import create_transport
from tool_bridge.providers import Provider
from tool_bridge.registry import Resolver, ToolRegistry
from tool_bridge.result_schema import ResultSchemaBuilder, check_result_type
from tool_bridge.schema import SchemaGenerator
from tool_bridge.types import (
    ChatMessage,
    ChatRequest,
    Settings,
    ToolCallRequest,
    ToolCallResponse,
    ToolCallResult,
    ToolSchema,
)

__all__ = ["ChatBuilder", "ChatClient", "NO_RECORD"]

T = TypeVar("T")

NO_RECORD = "No record return for the tool call"

EXTRACTION_PROMPT = (
    "Extract the information into JSON format, "
    "Use the following data as context for parsing: {context}"
)


def _to_json(value: Any) -> str:
    return json.dumps(to_jsonable_python(value, fallback=str))


class ChatBuilder:
    """
    Collects tool providers and builds a :class:`ChatClient`.

    Args:
        settings: Model and client configuration.
        transport: Endpoint to talk to. Defaults to the transport for
            ``settings.provider`` (OpenAI when unset), configured from *settings*.
        resolver: Supplies instances of providers whose constructor takes
            arguments.
        event_sink: Receives call/response events for requests with
            ``log_model_events`` set. Only used for the default transport.
        logger: Optional custom logger.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[Transport] = None,
        resolver: Optional[Resolver] = None,
        event_sink: Optional[EventSink] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)
        self._transport = transport
        self._event_sink = event_sink
        self._registry = ToolRegistry(resolver, logger=self.logger)

    def add_tool(self, provider_type: type, static: Optional[bool] = None) -> "ChatBuilder":
        """Register a provider class; registering the same class twice is a no-op."""
        self._registry.register(provider_type, static)
        return self

    def build(self) -> "ChatClient":
        """
        Generate the tool schema and create the client.

        Raises:
            ConfigurationError: No provider was added or a declaration is invalid.
        """
        if not len(self._registry):
            raise ConfigurationError(
                "No tool added. Add at least one tool before building the client."
            )

        schema = SchemaGenerator(logger=self.logger).generate(self._registry)
        self._registry.freeze()

        transport = self._transport or create_transport(
            self.settings.provider or Provider.OPENAI,
            api_key=self.settings.api_key,
            base_url=self.settings.base_url,
            timeout=self.settings.timeout,
            event_sink=self._event_sink,
            logger=self.logger,
        )
        return ChatClient(
            self.settings,
            self._registry,
            schema,
            transport,
            logger=self.logger,
        )


class ChatClient:
    """
    Runs conversation turns against the endpoint, dispatching tool calls.

    A client keeps per-turn state (accumulated tool results), so a single
    instance must not run overlapping conversations.
    """

    def __init__(
        self,
        settings: Settings,
        registry: ToolRegistry,
        schema: ToolSchema,
        transport: Transport,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.schema = schema
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__
        self.dispatcher = ToolDispatcher(registry, logger=self.logger)
        self._results: list[Any] = []
        self._log_events = False

    @property
    def results(self) -> list[Any]:
        """Tool results gathered during the current (or last) turn."""
        return list(self._results)

    def get_schema(self) -> str:
        """The tool descriptors exactly as sent to the endpoint, as JSON text."""
        return json.dumps(self.schema.to_wire())

    @overload
    async def create(
        self, request: Union[ChatRequest, Sequence[ChatMessage]], result_type: None = None
    ) -> ToolCallResponse[Any]: ...

    @overload
    async def create(
        self, request: Union[ChatRequest, Sequence[ChatMessage]], result_type: Type[T]
    ) -> ToolCallResponse[T]: ...

    async def create(self, request, result_type=None):
        """
        Run one conversation turn.

        Args:
            request: The transcript so far, optionally wrapped in a
                ``ChatRequest`` carrying schema and logging options.
            result_type: Pydantic model or dataclass to parse the final answer
                into. ``None`` returns the raw answer text only.

        Returns:
            A ToolCallResponse with the raw answer and, for typed turns, the
            parsed result.

        Raises:
            TransportError: The endpoint failed.
            ProtocolError: The model stopped for any reason other than a
                final answer or tool calls.
            CastError: The structured answer did not match *result_type*.
        """
        if not isinstance(request, ChatRequest):
            request = ChatRequest(messages=list(request))
        if result_type is not None:
            check_result_type(result_type)

        self._results = []
        self._log_events = request.log_model_events

        transcript: list[ChatMessage] = list(request.messages)
        choice = await self._converse(transcript)

        if choice.finish_reason != "stop":
            raise ProtocolError(
                f"Unable to complete request due to {choice.finish_reason}",
                choice.finish_reason,
            )

        content = choice.message.content or ""
        if result_type is None:
            return ToolCallResponse(content=content)

        parsed = await self._extract(content, result_type, request)
        return ToolCallResponse(content=content, parsed=parsed, is_parsed=True)

    async def _converse(self, transcript: list[ChatMessage]) -> Choice:
        """Send the transcript and keep answering tool calls until the model stops."""
        choice = await self._send(self._payload(transcript))
        rounds = 0

        while choice.finish_reason == "tool_calls":
            rounds += 1
            if self.settings.max_rounds is not None and rounds > self.settings.max_rounds:
                raise MaxRoundsExceededError(
                    f"Model still requesting tools after {self.settings.max_rounds} rounds",
                    choice.finish_reason,
                )
            self._log(f"Tool round {rounds}", logging.DEBUG)
            await self._answer_tool_calls(choice, transcript)
            # The forced choice only applies to the opening request unless configured
            follow_up = None if self.settings.force_choice_every_round else "auto"
            choice = await self._send(self._payload(transcript, tool_choice=follow_up))

        self._log(f"Finished with '{choice.finish_reason}' after {rounds} tool round(s)")
        return choice

    async def _answer_tool_calls(self, choice: Choice, transcript: list[ChatMessage]) -> None:
        calls = [ToolCallRequest.from_openai(tc) for tc in choice.message.tool_calls or []]
        if not calls:
            raise ProtocolError(
                "Finish reason 'tool_calls' without any tool call", choice.finish_reason
            )

        transcript.append(
            {
                "role": "assistant",
                "content": choice.message.content,
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": call.arguments},
                    }
                    for call in calls
                ],
            }
        )
        for call in calls:
            result = await self._run_tool(call)
            transcript.append(
                {"role": "tool", "tool_call_id": result.id, "content": result.content}
            )

    async def _run_tool(self, call: ToolCallRequest) -> ToolCallResult:
        try:
            value = await self.dispatcher.execute(call)
        except (ArgumentError, ToolExecutionError) as exc:
            if self.settings.raise_tool_errors:
                raise
            self._log(f"Tool '{call.name}' failed: {exc}", logging.WARNING)
            return ToolCallResult(id=call.id, content=f"Error: {exc}")

        if value is None:
            return ToolCallResult(id=call.id, content=NO_RECORD)
        self._results.append(value)
        return ToolCallResult(id=call.id, content=_to_json(value))

    async def _extract(self, content: str, result_type: Type[T], request: ChatRequest) -> T:
        """Re-ask the model to restate *content* under the forced result schema."""
        builder = ResultSchemaBuilder(
            request.strict,
            request.additional_properties,
            require_all_fields=self.settings.require_all_fields,
        )
        messages: list[ChatMessage] = [
            {
                "role": "system",
                "content": EXTRACTION_PROMPT.format(context=_to_json(self._results)),
            },
            {"role": "user", "content": content},
        ]
        choice = await self._send(
            self._payload(messages, tools=False, response_format=builder.build(result_type))
        )
        if choice.finish_reason != "stop":
            raise ProtocolError(
                f"Unable to complete extraction due to {choice.finish_reason}",
                choice.finish_reason,
            )
        return builder.parse(result_type, choice.message.content or "")

    def _payload(
        self,
        messages: list[ChatMessage],
        *,
        tools: bool = True,
        tool_choice: Optional[Union[str, dict[str, Any]]] = None,
        response_format: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.settings.model,
            "messages": list(messages),
            "temperature": self.settings.temperature,
        }
        if tools and self.schema.descriptors:
            payload["tools"] = self.schema.to_wire()
            payload["tool_choice"] = tool_choice or self.schema.tool_choice()
        if response_format is not None:
            payload["response_format"] = response_format
        return payload

    async def _send(self, payload: dict[str, Any]) -> Choice:
        response: ChatCompletion = await self.transport.complete(
            payload, log_events=self._log_events
        )
        if not response.choices:
            raise ProtocolError("Endpoint returned no choices")
        return response.choices[0]

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
