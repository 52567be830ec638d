"""
Event models for the Whop websocket feed.

Raw JSON frames are decoded once, at the boundary, into a closed set of
variants. Everything downstream matches on the variant type.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from whopbot.commands.registry import COMMAND_PREFIX

# Top-level keys for frames the bot never acts on
IGNORED_KEYS = (
    "goFetchNotifications",
    "marketplaceStats",
    "experiencePreviewContent",
    "channelSubscriptionState",
    "accessPassMember",
)


class RouterEventType(str, Enum):
    """Events observers can subscribe to on the router."""
    MESSAGE_RECEIVED = "message:received"
    COMMAND_RECEIVED = "command:received"
    COMMAND_PROCESSED = "command:processed"
    LIVESTREAM_STARTED = "livestream:started"
    CONNECTION_OPENED = "connection:opened"
    CONNECTION_CLOSED = "connection:closed"
    CONNECTION_ERROR = "connection:error"


@dataclass
class ChatPostEvent:
    """A chat or DM post."""
    id: str
    feed_id: str
    user_id: str
    content: str
    username: str = ""
    feed_type: str = "chat_feed"
    is_poster_admin: bool = False
    timestamp: datetime | None = None
    mentioned_user_ids: list[str] = field(default_factory=list)

    @property
    def is_command(self) -> bool:
        return self.content.startswith(COMMAND_PREFIX)


@dataclass
class LivestreamStartedEvent:
    """A livestream feed going live. ``feed_id`` is the livestream entity id."""
    feed_id: str
    host_id: str
    experience_id: str = ""
    title: str = ""
    started_at: datetime | None = None


@dataclass
class IgnoredEvent:
    reason: str


ChatEvent = Union[ChatPostEvent, LivestreamStartedEvent, IgnoredEvent]


def _parse_millis(value: Any) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def decode_event(raw: dict[str, Any]) -> ChatEvent:
    """
    Decode one websocket frame.

    Noise frames and unrecognised shapes decode to ``IgnoredEvent``; a
    recognised frame missing required fields raises ``ValueError``.
    """
    for key in IGNORED_KEYS:
        if raw.get(key):
            return IgnoredEvent(key)

    if (raw.get("broadcastResponse") or {}).get("typingIndicator"):
        return IgnoredEvent("broadcastResponse.typingIndicator")

    entity = raw.get("feedEntity") or {}
    if entity.get("postReactionCountUpdate"):
        return IgnoredEvent("feedEntity.postReactionCountUpdate")

    livestream = entity.get("livestreamFeed")
    if livestream:
        if not livestream.get("entityId") or not livestream.get("hostId"):
            raise ValueError("livestreamFeed frame without entityId or hostId")
        return LivestreamStartedEvent(
            feed_id=livestream["entityId"],
            host_id=livestream["hostId"],
            experience_id=livestream.get("experienceId") or "",
            title=livestream.get("title") or "",
            started_at=_parse_millis(livestream.get("startedAt")),
        )

    post = entity.get("dmsPost")
    if post:
        if not post.get("entityId") or not post.get("feedId"):
            raise ValueError("dmsPost frame without entityId or feedId")
        return ChatPostEvent(
            id=post["entityId"],
            feed_id=post["feedId"],
            user_id=post.get("userId") or "",
            content=post.get("content") or "",
            username=(post.get("user") or {}).get("username") or "",
            feed_type=post.get("feedType") or "chat_feed",
            is_poster_admin=bool(post.get("isPosterAdmin")),
            timestamp=_parse_millis(post.get("createdAt")),
            mentioned_user_ids=list(post.get("mentionedUserIds") or []),
        )

    return IgnoredEvent("unhandled")
