"""
Test doubles for the external capabilities.

- FakeTimerService runs timers on virtual time, advanced explicitly
- FakePlatformAPI records calls and keeps minimal moderation state
- FakeNotificationSink records notifications
"""

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from whopbot.errors import PlatformAPIError, WebhookError
from whopbot.hooks.service import Notification
from whopbot.platform.api import (
    AccessPass,
    EarningsReport,
    FeedPost,
    MembershipLookup,
    UserInfo,
)
from whopbot.scheduler.timers import TimerCallback


@dataclass
class _FakeTimer:
    timer_id: str
    due: float
    callback: TimerCallback
    interval: float | None = None
    seq: int = 0


class FakeTimerService:
    """Timers on a virtual clock starting at ``start``."""

    def __init__(self, start: float = 1_700_000_000.0):
        self._now = start
        self._timers: dict[str, _FakeTimer] = {}
        self._seq = 0

    def now(self) -> float:
        return self._now

    def call_later(self, timer_id: str, delay: float, callback: TimerCallback) -> None:
        self._install(_FakeTimer(timer_id, self._now + max(0.0, delay), callback))

    def call_every(self, timer_id: str, interval: float, callback: TimerCallback) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._install(_FakeTimer(timer_id, self._now + interval, callback, interval))

    def cancel(self, timer_id: str) -> bool:
        return self._timers.pop(timer_id, None) is not None

    def has(self, timer_id: str) -> bool:
        return timer_id in self._timers

    def active_ids(self) -> list[str]:
        return list(self._timers)

    def shutdown(self) -> int:
        count = len(self._timers)
        self._timers.clear()
        return count

    async def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self._now + seconds
        while True:
            due = [t for t in self._timers.values() if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self._now = timer.due

            if timer.interval is None:
                self._timers.pop(timer.timer_id, None)
            else:
                timer.due += timer.interval

            try:
                await timer.callback()
            except Exception as e:
                logger.error(f"Timer {timer.timer_id} callback failed: {e}")
        self._now = target

    def _install(self, timer: _FakeTimer) -> None:
        self._seq += 1
        timer.seq = self._seq
        self._timers[timer.timer_id] = timer


@dataclass
class SentMessage:
    feed_id: str
    message: str
    feed_type: str


class FakePlatformAPI:
    """In-memory platform with call recording."""

    def __init__(self):
        self.sent: list[SentMessage] = []
        self.users: dict[str, UserInfo] = {}
        self.banned: set[str] = set()
        self.muted: dict[str, int] = {}
        self.kicked: set[str] = set()
        self.earnings: dict[str, list[EarningsReport]] = {}
        self.referrals: dict[str, int] = {}
        self.posts: list[FeedPost] = []
        self.deleted: list[str] = []
        self.experience_id: str | None = "exp_1"
        self.memberships: dict[str, MembershipLookup] = {}
        self.free_days: list[tuple[str, int]] = []
        self.access_passes: dict[str, list[AccessPass]] = {}
        self.dm_channels: dict[str, str] = {}
        self.send_error: Exception | None = None
        self.fail_feeds: set[str] = set()

    def messages_to(self, feed_id: str) -> list[str]:
        return [m.message for m in self.sent if m.feed_id == feed_id]

    async def send_message(self, feed_id: str, message: str, feed_type: str = "chat_feed") -> str:
        if self.send_error is not None or feed_id in self.fail_feeds:
            raise self.send_error or PlatformAPIError(f"send to {feed_id} failed")
        self.sent.append(SentMessage(feed_id, message, feed_type))
        return f"post_{len(self.sent)}"

    async def get_user(self, user_id: str) -> UserInfo:
        return self.users.get(user_id) or UserInfo(id=user_id, username=user_id)

    async def ban_user(self, user_id: str) -> str:
        if user_id in self.banned:
            return "User is already banned"
        self.banned.add(user_id)
        return "banned"

    async def unban_user(self, user_id: str) -> str:
        if user_id not in self.banned:
            raise PlatformAPIError("User is not banned")
        self.banned.discard(user_id)
        return "unbanned"

    async def mute_user(self, user_id: str, muted_until: int) -> str:
        already = user_id in self.muted
        self.muted[user_id] = muted_until
        if already:
            raise PlatformAPIError("User is already muted")
        return "muted"

    async def unmute_user(self, user_id: str) -> str:
        if self.muted.pop(user_id, None) is None:
            raise PlatformAPIError("User is not muted")
        return "unmuted"

    async def kick_user(self, user_id: str) -> str:
        if user_id in self.kicked:
            return "User was already kicked"
        self.kicked.add(user_id)
        return "kicked"

    async def get_user_earnings(self, user_id: str) -> list[EarningsReport]:
        return self.earnings.get(user_id, [])

    async def get_user_referrals(self, user_id: str) -> int:
        return self.referrals.get(user_id, 0)

    async def get_feed_posts(self, feed_id: str, feed_type: str, limit: int = 50) -> list[FeedPost]:
        return [p for p in self.posts if p.feed_id in ("", feed_id)][:limit]

    async def delete_posts(self, post_ids: list[str], feed_id: str, feed_type: str) -> None:
        self.deleted.extend(post_ids)

    async def get_feed_experience_id(self, feed_id: str) -> str | None:
        return self.experience_id

    async def create_dm_channel(self, user_id: str) -> str:
        return self.dm_channels.setdefault(user_id, f"dm_{user_id}")

    async def get_feed_memberships(self, feed_id: str, user_id: str) -> MembershipLookup | None:
        return self.memberships.get(user_id)

    async def get_experience_access_passes(self, experience_id: str) -> list[AccessPass] | None:
        return self.access_passes.get(experience_id)

    async def add_free_days(self, membership_id: str, days: int) -> str | None:
        self.free_days.append((membership_id, days))
        return "2030-01-15T00:00:00Z"


@dataclass
class FakeNotificationSink:
    """Records notifications; ``fail_times`` makes the next sends raise."""
    sent: list[Notification] = field(default_factory=list)
    fail_times: int = 0
    attempts: int = 0

    def channel(self, name: str) -> list[Notification]:
        return [n for n in self.sent if n.channel == name]

    async def send(self, notification: Notification) -> dict[str, Any]:
        self.attempts += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            raise WebhookError("webhook unavailable")
        self.sent.append(notification)
        return {"success": True}

    async def notify(self, notification: Notification) -> bool:
        try:
            await self.send(notification)
        except WebhookError:
            return False
        return True
