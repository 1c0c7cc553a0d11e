"""
Tool Bridge - expose local methods as tools to chat-completion models.
"""

from .client import ChatBuilder, ChatClient
from .declarations import Prop, choice, tool
from .errors import (
    ArgumentError,
    CastError,
    ConfigurationError,
    MaxRoundsExceededError,
    ProtocolError,
    ResolutionError,
    ToolBridgeError,
    ToolExecutionError,
    TransportError,
    UnsupportedResultTypeError,
)
from .events import EventType, LLMEvent
from .factory import create_transport
from .providers import Provider, get_api_key
from .types import (
    ChatMessage,
    ChatRequest,
    Settings,
    ToolCallRequest,
    ToolCallResponse,
    ToolDescriptor,
)

__version__ = "0.1.0"

__all__ = [
    "ChatBuilder",
    "ChatClient",
    "Prop",
    "choice",
    "tool",
    "ArgumentError",
    "CastError",
    "ConfigurationError",
    "MaxRoundsExceededError",
    "ProtocolError",
    "ResolutionError",
    "ToolBridgeError",
    "ToolExecutionError",
    "TransportError",
    "UnsupportedResultTypeError",
    "EventType",
    "LLMEvent",
    "create_transport",
    "Provider",
    "get_api_key",
    "ChatMessage",
    "ChatRequest",
    "Settings",
    "ToolCallRequest",
    "ToolCallResponse",
    "ToolDescriptor",
]
