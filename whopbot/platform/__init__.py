"""Platform API capability and its GraphQL implementation."""

from whopbot.platform.api import (
    EarningsReport,
    FeedPost,
    Membership,
    MembershipLookup,
    PlatformAPI,
    UserInfo,
)
from whopbot.platform.graphql import WhopGraphQLClient

__all__ = [
    "PlatformAPI",
    "UserInfo",
    "EarningsReport",
    "FeedPost",
    "Membership",
    "MembershipLookup",
    "WhopGraphQLClient",
]
