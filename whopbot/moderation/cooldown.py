"""
Per-user command cooldowns.

Tracks two independent timestamps per user:
- last command, which drives the cooldown itself
- last cooldown notice, which throttles "please wait" replies
"""

import math
import time
from dataclasses import dataclass
from typing import Callable

from whopbot.utils.formatting import plural


def format_cooldown_time(seconds: int) -> str:
    """
    Format a remaining cooldown for chat.

    Examples:
        1 -> "1 second"
        60 -> "1 minute"
        125 -> "2 minutes and 5 seconds"
    """
    if seconds < 60:
        return plural(seconds, "second")

    minutes, remaining = divmod(seconds, 60)
    if remaining == 0:
        return plural(minutes, "minute")
    return f"{plural(minutes, 'minute')} and {plural(remaining, 'second')}"


def _finite(value: float, name: str) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {value}")
    return value


@dataclass(frozen=True)
class CooldownCheck:
    """Result of a cooldown lookup."""
    on_cooldown: bool
    remaining_seconds: int = 0
    formatted: str = "0 seconds"


NOT_ON_COOLDOWN = CooldownCheck(on_cooldown=False)


class CooldownManager:
    """
    Rate limiter for chat commands.

    Privileged callers (admins and cooldown-whitelisted users) are never
    rate limited. The notice period is independent of the cooldown period so
    a blocked user is reminded at most once per notice window.
    """

    def __init__(
        self,
        cooldown_seconds: float = 5,
        notice_minutes: float = 5,
        clock: Callable[[], float] = time.time,
    ):
        self._cooldown_period = 0.0
        self._notice_period = 0.0
        self.set_cooldown_period(cooldown_seconds)
        self.set_notice_period(notice_minutes)
        self._clock = clock

        self._last_message_at: dict[str, float] = {}
        self._last_notice_at: dict[str, float] = {}

    @property
    def cooldown_period(self) -> float:
        """Cooldown period in seconds."""
        return self._cooldown_period

    def set_cooldown_period(self, seconds: float) -> None:
        self._cooldown_period = max(0.0, _finite(seconds, "cooldown period"))

    @property
    def notice_period(self) -> float:
        """Notice suppression period in minutes."""
        return self._notice_period / 60

    def set_notice_period(self, minutes: float) -> None:
        self._notice_period = max(0.0, _finite(minutes, "notice period") * 60)

    def check_cooldown(self, user_id: str, is_privileged: bool) -> CooldownCheck:
        """
        Check whether a user is currently on cooldown.

        Args:
            user_id: The user sending a command.
            is_privileged: Admin or cooldown-whitelisted.

        Returns:
            CooldownCheck with the rounded-up remaining seconds.
        """
        if is_privileged:
            return NOT_ON_COOLDOWN

        last = self._last_message_at.get(user_id)
        if last is None:
            return NOT_ON_COOLDOWN

        remaining = self._cooldown_period - (self._clock() - last)
        if remaining <= 0:
            return NOT_ON_COOLDOWN

        remaining_seconds = math.ceil(remaining)
        return CooldownCheck(
            on_cooldown=True,
            remaining_seconds=remaining_seconds,
            formatted=format_cooldown_time(remaining_seconds),
        )

    def record_message(self, user_id: str) -> None:
        self._last_message_at[user_id] = self._clock()

    def should_send_notice(self, user_id: str) -> bool:
        """Whether a cooldown notice may be sent to this user now."""
        last = self._last_notice_at.get(user_id)
        if last is None:
            return True
        return self._clock() - last >= self._notice_period

    def record_notice(self, user_id: str) -> None:
        self._last_notice_at[user_id] = self._clock()
