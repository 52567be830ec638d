"""Event sources."""

from whopbot.channels.whop import WhopSocket

__all__ = ["WhopSocket"]
