"""Transports for the supported completion endpoints."""

from .base import BaseTransport, Transport
from .openai import OpenAITransport
from .anthropic import AnthropicTransport
from .gemini import GeminiTransport

__all__ = [
    "Transport",
    "BaseTransport",
    "OpenAITransport",
    "AnthropicTransport",
    "GeminiTransport",
]
