"""Shared fixtures: in-process completions and a scripted transport."""

from __future__ import annotations

import copy
import json
from typing import Any, Optional

import pytest
from openai.types.chat import ChatCompletion


def completion(
    content: Optional[str] = None,
    *,
    tool_calls: Optional[list[tuple[str, str, Any]]] = None,
    finish_reason: str = "stop",
) -> ChatCompletion:
    """Build a ChatCompletion; tool_calls are (id, name, arguments) tuples."""
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = [
            {
                "id": call_id,
                "type": "function",
                "function": {
                    "name": name,
                    "arguments": args if isinstance(args, str) else json.dumps(args),
                },
            }
            for call_id, name, args in tool_calls
        ]
    return ChatCompletion.model_validate(
        {
            "id": "cmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-test",
            "choices": [{"index": 0, "finish_reason": finish_reason, "message": message}],
        }
    )


class ScriptedTransport:
    """Returns queued completions and records every payload it was sent."""

    def __init__(self, *responses: ChatCompletion) -> None:
        self.responses = list(responses)
        self.payloads: list[dict[str, Any]] = []
        self.log_flags: list[bool] = []
        self.closed = False

    async def complete(self, payload: dict[str, Any], *, log_events: bool = False) -> ChatCompletion:
        self.payloads.append(copy.deepcopy(payload))
        self.log_flags.append(log_events)
        if not self.responses:
            raise AssertionError("ScriptedTransport ran out of responses")
        return self.responses.pop(0)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def make_completion():
    return completion


@pytest.fixture
def scripted():
    """Factory: ``scripted(resp1, resp2, ...)`` -> ScriptedTransport."""
    return ScriptedTransport
