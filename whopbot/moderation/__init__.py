"""Moderation state: cooldowns, whitelists and livestream greetings."""

from whopbot.moderation.cooldown import CooldownCheck, CooldownManager, format_cooldown_time
from whopbot.moderation.livestream import DEFAULT_LIVE_MESSAGE, LivestreamHandler
from whopbot.moderation.whitelist import WhitelistRegistry

__all__ = [
    "CooldownCheck",
    "CooldownManager",
    "format_cooldown_time",
    "LivestreamHandler",
    "DEFAULT_LIVE_MESSAGE",
    "WhitelistRegistry",
]
