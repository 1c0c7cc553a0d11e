"""
Error taxonomy for tool-bridge, plus translation of noisy provider SDK
exceptions into a unified `TransportError` that keeps the original exception
for full tracebacks.
"""

from __future__ import annotations

import importlib
import logging
from typing import Final, Optional, Type

__all__: tuple[str, ...] = (
    "ToolBridgeError",
    "ConfigurationError",
    "ResolutionError",
    "UnsupportedResultTypeError",
    "ArgumentError",
    "ToolExecutionError",
    "TransportError",
    "ProtocolError",
    "MaxRoundsExceededError",
    "CastError",
    "classify_error",
)


class ToolBridgeError(RuntimeError):
    """Base class for every error raised by tool-bridge.

    Attributes:
        original_exc: The underlying exception, if any.
    """

    original_exc: Optional[BaseException]

    def __init__(
        self, message: str, original_exc: Optional[BaseException] = None
    ) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        if original_exc is not None:
            self.__cause__ = original_exc


class ConfigurationError(ToolBridgeError):
    """Invalid tool declarations, missing providers or missing credentials."""


class ResolutionError(ConfigurationError):
    """A tool provider could not be turned into a live instance."""


class UnsupportedResultTypeError(ConfigurationError):
    """The requested result type cannot be expressed as a forced JSON schema."""


class ArgumentError(ToolBridgeError):
    """A tool call payload could not be deserialized or coerced."""


class ToolExecutionError(ToolBridgeError):
    """The tool itself raised while being invoked."""


class TransportError(ToolBridgeError):
    """The completion endpoint answered with a non-success status or was unreachable.

    Attributes:
        status_code: HTTP status, when the endpoint answered at all.
        body: Raw response body returned by the endpoint.
    """

    def __init__(
        self,
        message: str,
        original_exc: Optional[BaseException] = None,
        *,
        status_code: Optional[int] = None,
        body: object = None,
    ) -> None:
        super().__init__(message, original_exc)
        self.status_code = status_code
        self.body = body


class ProtocolError(ToolBridgeError):
    """The endpoint stopped for a reason the conversation loop cannot handle."""

    def __init__(self, message: str, finish_reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.finish_reason = finish_reason


class MaxRoundsExceededError(ProtocolError):
    """The model kept requesting tools past the configured round limit."""


class CastError(ToolBridgeError):
    """The structured answer could not be parsed into the requested type.

    Attributes:
        raw: The text that failed to parse.
    """

    def __init__(
        self, raw: str, original_exc: Optional[BaseException] = None
    ) -> None:
        super().__init__(raw, original_exc)
        self.raw = raw


def _import_exception(path: str) -> Type[Exception]:
    """Import an exception type by dotted path."""
    module_name, _, attr = path.rpartition(".")
    module = importlib.import_module(module_name)
    return getattr(module, attr)


OpenAI_APIStatusError: Final = _import_exception("openai.APIStatusError")
OpenAI_APIConnectionError: Final = _import_exception("openai.APIConnectionError")
OpenAI_RateLimitError: Final = _import_exception("openai.RateLimitError")

Anthropic_APIStatusError: Final = _import_exception("anthropic.APIStatusError")
Anthropic_APIConnectionError: Final = _import_exception("anthropic.APIConnectionError")
Anthropic_RateLimitError: Final = _import_exception("anthropic.RateLimitError")

STATUS_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAI_APIStatusError,
    Anthropic_APIStatusError,
)

CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAI_APIConnectionError,
    Anthropic_APIConnectionError,
    TimeoutError,
    ConnectionError,
)

RATE_LIMIT_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAI_RateLimitError,
    Anthropic_RateLimitError,
)


def _response_body(exc: Exception) -> object:
    response = getattr(exc, "response", None)
    if response is not None:
        return response.text
    return getattr(exc, "body", None)


def classify_error(
    exc: Exception,
    logger: Optional[logging.Logger] = None,
) -> TransportError:
    """Wrap an SDK exception in TransportError with a friendly, concise message."""
    log = logger or logging.getLogger("tool_bridge.errors")

    if isinstance(exc, RATE_LIMIT_ERRORS):
        msg = "Rate-limit exceeded"
    elif isinstance(exc, CONN_ERRORS):
        msg = "Connection problem - unable to reach the LLM provider"
    elif isinstance(exc, STATUS_ERRORS):
        msg = f"API error ({getattr(exc, 'status_code', 'unknown')})"
    else:
        msg = exc.__class__.__name__

    log.error("%s: %s", msg, exc)
    return TransportError(
        f"{msg}: {exc}",
        exc,
        status_code=getattr(exc, "status_code", None),
        body=_response_body(exc),
    )
