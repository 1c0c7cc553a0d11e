from .chat import ChatMessage, ChatRequest, Settings, ToolCallResponse
from .tool import (
    ParameterSchema,
    PropertySchema,
    ToolCallRequest,
    ToolCallResult,
    ToolDescriptor,
    ToolProvider,
    ToolSchema,
)

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "Settings",
    "ToolCallResponse",
    "ParameterSchema",
    "PropertySchema",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDescriptor",
    "ToolProvider",
    "ToolSchema",
]
