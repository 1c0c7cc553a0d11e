"""Gemini via its OpenAI-compatible endpoint."""

from __future__ import annotations

import logging
from typing import Optional

from tool_bridge.adapters.openai import OpenAITransport
from tool_bridge.events import EventSink

_DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class GeminiTransport(OpenAITransport):
    """OpenAI transport pointed at Gemini's OpenAI-compatible API."""

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
        super().__init__(
            api_key=api_key,
            base_url=base_url or _DEFAULT_GEMINI_BASE_URL,
            timeout=timeout,
            max_retries=max_retries,
            event_sink=event_sink,
            logger=logger,
            name=name,
        )
