"""Utility helpers for whopbot."""

from whopbot.utils.dedup import RecentIdSet
from whopbot.utils.formatting import format_currency, format_date, plural
from whopbot.utils.retry import RetryPolicy

__all__ = ["RecentIdSet", "RetryPolicy", "plural", "format_date", "format_currency"]
