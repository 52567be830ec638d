"""
Platform API capability.

The command handlers only depend on the ``PlatformAPI`` protocol; the GraphQL
client in ``whopbot.platform.graphql`` is the production implementation.
"""

from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class UserInfo:
    """Public profile of a platform user."""
    id: str
    username: str = ""
    name: str = ""
    profile_pic: str = ""
    created_at: str = ""

    @property
    def handle(self) -> str:
        return self.username or self.id

    @property
    def display_name(self) -> str:
        return self.name or self.handle


@dataclass
class EarningsReport:
    earnings_type: str
    last_24_hours: float = 0.0
    last_7_days: float = 0.0
    last_30_days: float = 0.0
    lifetime: float = 0.0


@dataclass
class FeedPost:
    """A chat post as returned by feed history queries."""
    id: str
    user_id: str
    content: str = ""
    created_at: str = ""
    feed_id: str = ""
    feed_type: str = ""
    is_poster_admin: bool = False
    username: str = ""


@dataclass
class Membership:
    id: str
    status: str = ""
    expires_at: str = ""
    experience_ids: list[str] = field(default_factory=list)


@dataclass
class AccessPass:
    """A purchasable product; ``route`` is its whop.com path."""
    id: str
    title: str = ""
    route: str = ""


@dataclass
class MembershipLookup:
    """A user's memberships in the company that owns a feed."""
    experience_id: str
    company_id: str
    user: UserInfo
    memberships: list[Membership] = field(default_factory=list)
    experience_name: str = ""

    def membership_for_experience(self) -> Membership | None:
        for membership in self.memberships:
            if self.experience_id in membership.experience_ids:
                return membership
        return None


class PlatformAPI(Protocol):
    """
    Remote operations the bot performs on behalf of its agent user.

    Every call may raise ``PlatformAPIError``; command handlers decide whether
    a failure is user-facing or operational.
    """

    async def send_message(self, feed_id: str, message: str, feed_type: str = "chat_feed") -> str: ...

    async def get_user(self, user_id: str) -> UserInfo: ...

    async def ban_user(self, user_id: str) -> str: ...

    async def unban_user(self, user_id: str) -> str: ...

    async def mute_user(self, user_id: str, muted_until: int) -> str: ...

    async def unmute_user(self, user_id: str) -> str: ...

    async def kick_user(self, user_id: str) -> str: ...

    async def get_user_earnings(self, user_id: str) -> list[EarningsReport]: ...

    async def get_user_referrals(self, user_id: str) -> int: ...

    async def get_feed_posts(self, feed_id: str, feed_type: str, limit: int = 50) -> list[FeedPost]: ...

    async def delete_posts(self, post_ids: list[str], feed_id: str, feed_type: str) -> None: ...

    async def get_feed_experience_id(self, feed_id: str) -> str | None: ...

    async def create_dm_channel(self, user_id: str) -> str: ...

    async def get_feed_memberships(self, feed_id: str, user_id: str) -> MembershipLookup | None: ...

    async def get_experience_access_passes(self, experience_id: str) -> list[AccessPass] | None: ...

    async def add_free_days(self, membership_id: str, days: int) -> str | None: ...
