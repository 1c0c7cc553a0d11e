"""
Observability events emitted by transports around each completion call.

Sinks are plain callables handed to a transport; there is no global
subscription list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

__all__ = ["EventType", "LLMEvent", "EventSink", "emit"]

_logger = logging.getLogger(__name__)


class EventType(str, Enum):
    CALL = "call"
    RESPONSE = "response"


@dataclass(frozen=True)
class LLMEvent:
    type: EventType
    data: dict[str, Any]


EventSink = Callable[[LLMEvent], None]


def emit(sink: Optional[EventSink], event_type: EventType, data: dict[str, Any]) -> None:
    """Deliver an event to *sink*, if there is one."""
    if sink is None:
        return
    _logger.debug("Publishing %s event", event_type.value)
    sink(LLMEvent(type=event_type, data=data))
