"""Websocket event decoding and routing."""

from whopbot.events.models import (
    ChatEvent,
    ChatPostEvent,
    IgnoredEvent,
    LivestreamStartedEvent,
    RouterEventType,
    decode_event,
)
from whopbot.events.router import EventRouter

__all__ = [
    "ChatEvent",
    "ChatPostEvent",
    "EventRouter",
    "IgnoredEvent",
    "LivestreamStartedEvent",
    "RouterEventType",
    "decode_event",
]
