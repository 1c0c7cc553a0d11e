"""
Anthropic Messages transport.

Requests and responses are translated to and from the chat-completion shape so
the conversation loop stays provider-neutral. A ``json_schema`` response format
is emulated with a single forced tool whose input is returned as the answer text.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional, Self

from anthropic import AsyncAnthropic
from anthropic.types import Message
from openai.types.chat import ChatCompletion

from tool_bridge.adapters.base import BaseTransport
from tool_bridge.errors import ConfigurationError, ProtocolError
from tool_bridge.events import EventSink

__all__ = ["AnthropicTransport", "to_anthropic", "from_anthropic"]

DEFAULT_MAX_TOKENS = 4096

_FINISH_REASONS = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "tool_use": "tool_calls",
    "max_tokens": "length",
    "refusal": "content_filter",
}


def _content_text(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return json.dumps(content)


def _convert_messages(messages: list[dict[str, Any]]) -> tuple[str, list[dict[str, Any]]]:
    system_parts: list[str] = []
    converted: list[dict[str, Any]] = []

    for msg in messages:
        role = msg["role"]
        if role == "system":
            system_parts.append(_content_text(msg.get("content")))
            continue

        if role == "tool":
            block = {
                "type": "tool_result",
                "tool_use_id": msg["tool_call_id"],
                "content": _content_text(msg.get("content")),
            }
            # Consecutive tool results share one user turn
            last = converted[-1] if converted else None
            if (
                last is not None
                and last["role"] == "user"
                and isinstance(last["content"], list)
                and all(b.get("type") == "tool_result" for b in last["content"])
            ):
                last["content"].append(block)
            else:
                converted.append({"role": "user", "content": [block]})
            continue

        if role == "assistant" and msg.get("tool_calls"):
            blocks: list[dict[str, Any]] = []
            if msg.get("content"):
                blocks.append({"type": "text", "text": msg["content"]})
            for tc in msg["tool_calls"]:
                arguments = tc["function"].get("arguments") or "{}"
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": tc["id"],
                        "name": tc["function"]["name"],
                        "input": json.loads(arguments) if isinstance(arguments, str) else arguments,
                    }
                )
            converted.append({"role": "assistant", "content": blocks})
            continue

        converted.append({"role": role, "content": _content_text(msg.get("content"))})

    return "\n\n".join(p for p in system_parts if p), converted


def to_anthropic(payload: dict[str, Any]) -> tuple[dict[str, Any], Optional[str]]:
    """
    Convert a chat-completion payload to ``messages.create`` arguments.

    Returns:
        The request arguments, and the name of the forced result tool when the
        payload asked for a ``json_schema`` response format.
    """
    system, messages = _convert_messages(payload.get("messages", []))
    args: dict[str, Any] = {
        "model": payload["model"],
        "messages": messages,
        "max_tokens": payload.get("max_tokens") or DEFAULT_MAX_TOKENS,
    }
    if system:
        args["system"] = system
    if payload.get("temperature") is not None:
        args["temperature"] = payload["temperature"]

    result_tool: Optional[str] = None
    response_format = payload.get("response_format")
    if response_format and response_format.get("type") == "json_schema":
        spec = response_format["json_schema"]
        result_tool = spec["name"]
        args["tools"] = [
            {
                "name": result_tool,
                "description": "Respond with the extracted data.",
                "input_schema": spec["schema"],
            }
        ]
        args["tool_choice"] = {"type": "tool", "name": result_tool}
        return args, result_tool

    if payload.get("tools"):
        args["tools"] = [
            {
                "name": tool["function"]["name"],
                "description": tool["function"].get("description", ""),
                "input_schema": tool["function"].get("parameters", {"type": "object"}),
            }
            for tool in payload["tools"]
        ]
        choice = payload.get("tool_choice")
        if isinstance(choice, dict):
            args["tool_choice"] = {"type": "tool", "name": choice["function"]["name"]}
        elif choice == "auto":
            args["tool_choice"] = {"type": "auto"}

    return args, result_tool


def from_anthropic(raw: Message, result_tool: Optional[str] = None) -> ChatCompletion:
    """Convert an Anthropic ``Message`` into a single-choice ``ChatCompletion``."""
    text_parts: list[str] = []
    tool_calls: list[dict[str, Any]] = []
    result_text: Optional[str] = None

    for block in raw.content:
        if block.type == "text":
            text_parts.append(block.text)
        elif block.type == "tool_use":
            arguments = json.dumps(block.input)
            if result_tool is not None and block.name == result_tool:
                result_text = arguments
                continue
            tool_calls.append(
                {
                    "id": block.id,
                    "type": "function",
                    "function": {"name": block.name, "arguments": arguments},
                }
            )

    if result_text is not None:
        finish_reason = "stop"
        content: Optional[str] = result_text
    else:
        finish_reason = _FINISH_REASONS.get(raw.stop_reason or "")
        if finish_reason is None:
            raise ProtocolError(
                f"Unable to complete request due to {raw.stop_reason}", raw.stop_reason
            )
        content = "".join(text_parts) or None

    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls

    return ChatCompletion.model_validate(
        {
            "id": raw.id,
            "object": "chat.completion",
            "created": int(time.time()),
            "model": raw.model,
            "choices": [{"index": 0, "finish_reason": finish_reason, "message": message}],
            "usage": {
                "prompt_tokens": raw.usage.input_tokens,
                "completion_tokens": raw.usage.output_tokens,
                "total_tokens": raw.usage.input_tokens + raw.usage.output_tokens,
            },
        }
    )


class AnthropicTransport(BaseTransport):
    """
    Anthropic transport (async-only).

    Use ``AnthropicTransport.from_client`` when you already have an ``AsyncAnthropic`` instance.
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
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    @classmethod
    def from_client(
        cls,
        client: AsyncAnthropic,
        *,
        event_sink: Optional[EventSink] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Wrap an existing ``AsyncAnthropic`` client.
        """
        if not isinstance(client, AsyncAnthropic):
            raise TypeError(
                f"{cls.__name__}.from_client expects AsyncAnthropic; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseTransport.__init__(self, event_sink=event_sink, logger=logger, name=name)
        self._client = client
        return self

    async def _complete_impl(self, payload: dict[str, Any]) -> ChatCompletion:
        args, result_tool = to_anthropic(payload)
        raw: Message = await self._client.messages.create(**args)
        return from_anthropic(raw, result_tool)
