"""
GraphQL client for the Whop public API.

Implements ``PlatformAPI`` over httpx with bearer auth, acting on behalf of
the configured agent user.
"""

from typing import Any

import httpx
from loguru import logger

from whopbot.errors import PlatformAPIError
from whopbot.platform.api import (
    AccessPass,
    EarningsReport,
    FeedPost,
    Membership,
    MembershipLookup,
    UserInfo,
)

SEND_MESSAGE = """
mutation SendMessage($input: SendMessageInput!) {
  sendMessage(input: $input)
}
"""

BAN_USER = """
mutation banUser($input: BanUserInput!) {
  banUser(input: $input)
}
"""

UNBAN_USER = """
mutation unbanUser($input: UnbanUserInput!) {
  unbanUser(input: $input)
}
"""

MUTE_USER = """
mutation CreateCompanyMutedUser($input: CreateCompanyMutedUserInput!) {
  createCompanyMutedUser(input: $input)
}
"""

UNMUTE_USER = """
mutation DeleteCompanyMutedUser($input: DeleteCompanyMutedUserInput!) {
  deleteCompanyMutedUser(input: $input)
}
"""

KICK_USER = """
mutation KickFromAWhop($input: KickFromAWhopInput!) {
  kickFromAWhop(input: $input)
}
"""

GET_USER = """
query GetUser($id: ID!) {
  publicUser(id: $id) { id username name profilePic createdAt }
}
"""

GET_USER_EARNINGS = """
query GetUserEarnings($id: ID!) {
  publicUser(id: $id) {
    id
    earningsReports {
      nodes { earningsType last24Hours last7Days last30Days lifetime }
    }
  }
}
"""

GET_USER_REFERRALS = """
query GetUserReferrals($publicUserId: ID!) {
  publicUser(id: $publicUserId) { primaryUserReferralCountLast24Hours }
}
"""

GET_FEED_POSTS = """
query FeedPosts($feedId: ID!, $feedType: FeedTypes!, $limit: Int, $direction: Direction) {
  feedPosts(feedId: $feedId, feedType: $feedType, limit: $limit, direction: $direction,
            includeDeleted: false, includeReactions: false) {
    posts {
      ... on DmsPost {
        id userId content createdAt feedId feedType isPosterAdmin
      }
    }
    users { id username name }
  }
}
"""

PROCESS_ENTITIES = """
mutation MessagesProcessEntitiesMutation($input: ProcessEntitiesInput!) {
  processEntities(input: $input) { entities { id isDeleted } }
}
"""

GET_CHAT_FEED = """
query GetChatFeedDetails($feedId: ID!) {
  chatFeed(feedId: $feedId) { id experienceId }
}
"""

GET_EXPERIENCE = """
query GetExperience($experienceId: ID!) {
  publicExperience(id: $experienceId) { id name company { id } }
}
"""

GET_EXPERIENCE_ACCESS_PASSES = """
query GetExperienceAccessPasses($experienceId: ID!) {
  publicExperience(id: $experienceId) { id accessPasses { id title route } }
}
"""

GET_USER_AND_MEMBERSHIPS = """
query GetUserAndMemberships($userId: ID!, $companyId: ID!) {
  publicUser(id: $userId) { id username name profilePic }
  company(id: $companyId) {
    companyMember(id: $userId) {
      memberships {
        nodes { id status expiresAt accessPass { id experiences { id } } }
      }
    }
  }
}
"""

UPDATE_MEMBERSHIP = """
mutation UpdateMembership($input: UpdateMembershipInput!) {
  updateMembership(input: $input) { member { id expiresAt } }
}
"""

CREATE_DM_CHANNEL = """
mutation CreateDmChannel($input: CreateDmChannelInput!) {
  createDmChannel(input: $input) { feedData { feed { id } } }
}
"""


def _user_from(data: dict[str, Any] | None, user_id: str) -> UserInfo:
    data = data or {}
    created_at = data.get("createdAt")
    return UserInfo(
        id=data.get("id") or user_id,
        username=data.get("username") or "",
        name=data.get("name") or "",
        profile_pic=data.get("profilePic") or "",
        created_at=str(created_at) if created_at is not None else "",
    )


class WhopGraphQLClient:
    """
    Async GraphQL client for the Whop API.

    Features:
    - Bearer auth with ``x-on-behalf-of`` agent impersonation
    - GraphQL and HTTP errors raised as PlatformAPIError
    """

    def __init__(
        self,
        api_key: str,
        agent_user_id: str,
        company_id: str = "",
        app_id: str = "",
        url: str = "https://api.whop.com/public-graphql",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.agent_user_id = agent_user_id
        self.company_id = company_id
        self.app_id = app_id

        headers = {
            "Authorization": f"Bearer {api_key}",
            "x-on-behalf-of": agent_user_id,
            "Content-Type": "application/json",
        }
        if company_id:
            headers["x-company-id"] = company_id

        self._client = client or httpx.AsyncClient(timeout=timeout, headers=headers)

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Run a query or mutation.

        Returns:
            The ``data`` object of the response.

        Raises:
            PlatformAPIError: On transport failure or GraphQL errors.
        """
        try:
            response = await self._client.post(
                self.url,
                json={"query": query, "variables": variables or {}},
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise PlatformAPIError(f"GraphQL request failed: {e}") from e
        except ValueError as e:
            raise PlatformAPIError(f"Invalid GraphQL response: {e}") from e

        errors = body.get("errors")
        if errors:
            message = errors[0].get("message", "API request failed")
            raise PlatformAPIError(message)

        return body.get("data") or {}

    async def send_message(self, feed_id: str, message: str, feed_type: str = "chat_feed") -> str:
        data = await self.execute(
            SEND_MESSAGE,
            {"input": {"feedId": feed_id, "message": message, "feedType": feed_type}},
        )
        return data.get("sendMessage", "")

    async def get_user(self, user_id: str) -> UserInfo:
        data = await self.execute(GET_USER, {"id": user_id})
        return _user_from(data.get("publicUser"), user_id)

    async def ban_user(self, user_id: str) -> str:
        data = await self.execute(BAN_USER, {"input": {"userId": user_id}})
        return str(data.get("banUser", ""))

    async def unban_user(self, user_id: str) -> str:
        data = await self.execute(UNBAN_USER, {"input": {"userId": user_id}})
        return str(data.get("unbanUser", ""))

    async def mute_user(self, user_id: str, muted_until: int) -> str:
        data = await self.execute(
            MUTE_USER,
            {"input": {"userId": user_id, "mutedUntil": muted_until}},
        )
        return str(data.get("createCompanyMutedUser", ""))

    async def unmute_user(self, user_id: str) -> str:
        data = await self.execute(UNMUTE_USER, {"input": {"userId": user_id}})
        return str(data.get("deleteCompanyMutedUser", ""))

    async def kick_user(self, user_id: str) -> str:
        data = await self.execute(KICK_USER, {"input": {"id": user_id}})
        return str(data.get("kickFromAWhop", ""))

    async def get_user_earnings(self, user_id: str) -> list[EarningsReport]:
        data = await self.execute(GET_USER_EARNINGS, {"id": user_id})
        user = data.get("publicUser") or {}
        nodes = (user.get("earningsReports") or {}).get("nodes") or []
        return [
            EarningsReport(
                earnings_type=node.get("earningsType", ""),
                last_24_hours=float(node.get("last24Hours") or 0),
                last_7_days=float(node.get("last7Days") or 0),
                last_30_days=float(node.get("last30Days") or 0),
                lifetime=float(node.get("lifetime") or 0),
            )
            for node in nodes
        ]

    async def get_user_referrals(self, user_id: str) -> int:
        data = await self.execute(GET_USER_REFERRALS, {"publicUserId": user_id})
        user = data.get("publicUser") or {}
        return int(user.get("primaryUserReferralCountLast24Hours") or 0)

    async def get_feed_posts(self, feed_id: str, feed_type: str, limit: int = 50) -> list[FeedPost]:
        data = await self.execute(
            GET_FEED_POSTS,
            {"feedId": feed_id, "feedType": feed_type, "limit": limit, "direction": "desc"},
        )
        feed = data.get("feedPosts") or {}
        usernames = {u["id"]: u.get("username") or "" for u in feed.get("users") or [] if "id" in u}

        posts = []
        for post in feed.get("posts") or []:
            if not post or "id" not in post:
                continue
            user_id = post.get("userId", "")
            posts.append(FeedPost(
                id=post["id"],
                user_id=user_id,
                content=post.get("content") or "",
                created_at=str(post.get("createdAt") or ""),
                feed_id=post.get("feedId") or feed_id,
                feed_type=post.get("feedType") or feed_type,
                is_poster_admin=bool(post.get("isPosterAdmin")),
                username=usernames.get(user_id, ""),
            ))
        return posts

    async def delete_posts(self, post_ids: list[str], feed_id: str, feed_type: str) -> None:
        if not post_ids:
            return

        await self.execute(PROCESS_ENTITIES, {
            "input": {
                "appId": self.app_id,
                "dmsPosts": [
                    {
                        "id": post_id,
                        "feedId": feed_id,
                        "feedType": feed_type,
                        "isDeleted": True,
                        "content": "",
                        "mentionedUserIds": [],
                        "isEveryoneMentioned": False,
                    }
                    for post_id in post_ids
                ],
            }
        })

    async def get_feed_experience_id(self, feed_id: str) -> str | None:
        data = await self.execute(GET_CHAT_FEED, {"feedId": feed_id})
        return (data.get("chatFeed") or {}).get("experienceId") or None

    async def create_dm_channel(self, user_id: str) -> str:
        data = await self.execute(CREATE_DM_CHANNEL, {"input": {"withUserIds": [user_id]}})
        try:
            return data["createDmChannel"]["feedData"]["feed"]["id"]
        except (KeyError, TypeError) as e:
            raise PlatformAPIError(f"Could not create DM channel with {user_id}") from e

    async def get_feed_memberships(self, feed_id: str, user_id: str) -> MembershipLookup | None:
        experience_id = await self.get_feed_experience_id(feed_id)
        if not experience_id:
            return None

        experience = (await self.execute(
            GET_EXPERIENCE, {"experienceId": experience_id}
        )).get("publicExperience") or {}
        company_id = (experience.get("company") or {}).get("id")
        if not company_id:
            return None

        data = await self.execute(
            GET_USER_AND_MEMBERSHIPS, {"userId": user_id, "companyId": company_id}
        )
        member = ((data.get("company") or {}).get("companyMember")) or {}
        nodes = (member.get("memberships") or {}).get("nodes") or []

        memberships = [
            Membership(
                id=node["id"],
                status=node.get("status") or "",
                expires_at=str(node.get("expiresAt") or ""),
                experience_ids=[
                    exp["id"]
                    for exp in ((node.get("accessPass") or {}).get("experiences") or [])
                    if "id" in exp
                ],
            )
            for node in nodes
            if node and "id" in node
        ]

        return MembershipLookup(
            experience_id=experience_id,
            company_id=company_id,
            user=_user_from(data.get("publicUser"), user_id),
            memberships=memberships,
            experience_name=experience.get("name") or "",
        )

    async def get_experience_access_passes(self, experience_id: str) -> list[AccessPass] | None:
        """Access passes of an experience, or None if the experience is not visible."""
        data = await self.execute(
            GET_EXPERIENCE_ACCESS_PASSES, {"experienceId": experience_id}
        )
        experience = data.get("publicExperience")
        if not experience or experience.get("accessPasses") is None:
            return None
        return [
            AccessPass(
                id=node["id"],
                title=node.get("title") or "",
                route=node.get("route") or "",
            )
            for node in experience["accessPasses"]
            if node and "id" in node
        ]

    async def add_free_days(self, membership_id: str, days: int) -> str | None:
        data = await self.execute(UPDATE_MEMBERSHIP, {
            "input": {
                "id": membership_id,
                "membershipAction": "add_free_days",
                "freeDays": days,
            }
        })
        member = (data.get("updateMembership") or {}).get("member") or {}
        expires_at = member.get("expiresAt")
        logger.info(f"Added {days} free days to membership {membership_id}")
        return str(expires_at) if expires_at else None

    async def close(self) -> None:
        await self._client.aclose()
