"""Builders for moderation, poll and log notifications."""

import json
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from whopbot.hooks.service import Embed, EmbedField, Notification
from whopbot.utils.formatting import plural

if TYPE_CHECKING:
    from whopbot.polls.engine import Poll, PollOption, PollResult

MODERATION_FOOTER = "Whop Moderation"
FAVICON_URL = "https://whop.com/favicon.ico"

MODERATION_COLORS = {
    "mute": 0xFFAA00,
    "unmute": 0x46A758,
    "ban": 0xE54D2E,
    "unban": 0x0090FF,
    "kick": 0xFF6B6B,
    "admin whitelist": 0x0090FF,
    "admin unwhitelist": 0xFFA500,
}

PAST_TENSE = {
    "ban": "banned",
    "unban": "unbanned",
    "mute": "muted",
    "unmute": "unmuted",
    "kick": "kicked",
    "whitelist": "whitelisted",
    "unwhitelist": "unwhitelisted",
    "admin whitelist": "admin whitelisted",
    "admin unwhitelist": "admin unwhitelisted",
}


class LogLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"
    SUCCESS = "success"


LOG_COLORS = {
    LogLevel.INFO: 0x95A5A6,
    LogLevel.WARNING: 0xF39C12,
    LogLevel.ERROR: 0xE74C3C,
    LogLevel.DEBUG: 0x3498DB,
    LogLevel.SUCCESS: 0x2ECC71,
}


def format_duration(seconds: int) -> str:
    """Render a moderation duration using its largest whole unit."""
    if seconds < 60:
        return plural(seconds, "second")
    if seconds < 3600:
        return plural(seconds // 60, "minute")
    if seconds < 86400:
        return plural(seconds // 3600, "hour")
    return plural(seconds // 86400, "day")


def moderation_notification(
    action: str,
    target_user_id: str,
    target_username: str,
    moderator_username: str,
    reason: str | None = None,
    duration_seconds: int | None = None,
    target_name: str | None = None,
    joined: str = "Unknown",
) -> Notification:
    """
    Build a moderation notification.

    Args:
        action: ban, unban, mute, unmute, kick, whitelist, unwhitelist,
            admin whitelist or admin unwhitelist.
        target_user_id: Moderated user's id, used for the profile link.
        target_username: Moderated user's handle.
        moderator_username: Handle of the admin who acted.
        reason: Optional free-text reason.
        duration_seconds: Optional mute duration.
        target_name: Display name, falls back to the handle.
        joined: Formatted platform join date.
    """
    action = action.lower()
    past = PAST_TENSE.get(action, action + ("d" if action.endswith("e") else "ed"))
    display = target_name or target_username

    fields = [
        EmbedField("Member", f"@{target_username}", inline=True),
        EmbedField("Moderator", f"@{moderator_username}", inline=True),
    ]
    if duration_seconds:
        fields.append(EmbedField("Duration", format_duration(duration_seconds), inline=True))
    if reason:
        fields.append(EmbedField("Reason", reason))
    fields.append(EmbedField("Whop Join Date", joined or "Unknown", inline=True))

    if action == "kick":
        description = f"{display} has been kicked from the Whop"
    else:
        description = f"{display} has been {past} in the chat"

    embed = Embed(
        title=f"{past.title()} {display}",
        url=f"https://whop.com/messages/?to_user_id={target_user_id}",
        description=description,
        color=MODERATION_COLORS.get(action, 0x6C5DD3),
        fields=fields,
        footer=MODERATION_FOOTER,
        footer_icon_url=FAVICON_URL,
    )
    return Notification(channel="moderation", embeds=[embed])


def poll_created_notification(
    poll_id: str,
    question: str,
    options: list["PollOption"],
    creator_id: str,
    creator_username: str,
    duration_minutes: int,
) -> Notification:
    options_text = "\n".join(f"• {opt.text}" for opt in options)
    embed = Embed(
        title=f"📊 New Poll Created: {question}",
        color=0x3498DB,
        fields=[
            EmbedField("Options", options_text),
            EmbedField("Duration", plural(duration_minutes, "minute"), inline=True),
            EmbedField("Created by", f"{creator_username} ({creator_id})", inline=True),
        ],
    )
    return Notification(
        channel="poll",
        content=f"A new poll has been created! Vote using /vote {poll_id} [option number].",
        embeds=[embed],
    )


def poll_results_notification(
    poll: "Poll",
    results: list["PollResult"],
    bar_length: int = 15,
) -> Notification:
    ranked = sorted(results, key=lambda r: r.votes, reverse=True)
    lines = []
    for result in ranked:
        bar = "█" * round(result.percentage * bar_length / 100)
        lines.append(
            f"{result.text}: {bar} {plural(result.votes, 'vote')} ({result.percentage:.1f}%)"
        )

    total = len(poll.votes)
    embed = Embed(
        title="📊 Poll Results",
        description=poll.question,
        color=0x2ECC71,
        fields=[
            EmbedField("Results", "\n".join(lines) if total else "No votes were cast."),
            EmbedField("Total Votes", str(total), inline=True),
            EmbedField("Poll ID", poll.id, inline=True),
        ],
        footer=f"Whop Polls • {datetime.now().strftime('%Y-%m-%d %H:%M')}",
    )
    return Notification(
        channel="poll",
        content="The poll has ended! Here are the results:",
        embeds=[embed],
    )


def log_notification(
    level: LogLevel,
    title: str,
    message: str,
    metadata: dict[str, Any] | None = None,
) -> Notification:
    """Build a log channel notification, one field per metadata entry."""
    fields = []
    for key, value in (metadata or {}).items():
        if value is None:
            continue
        text = json.dumps(value, indent=2) if isinstance(value, (dict, list)) else str(value)
        fields.append(EmbedField(key, text, inline=len(text) < 50))
    fields.append(EmbedField("Timestamp", datetime.now().isoformat(), inline=True))

    embed = Embed(
        title=f"[{level.value.upper()}] {title}",
        description=message,
        color=LOG_COLORS.get(level, LOG_COLORS[LogLevel.INFO]),
        fields=fields,
        footer=f"Whop Bot Logs • {level.value}",
    )
    return Notification(channel="log", embeds=[embed])


def log_info(title: str, message: str, metadata: dict[str, Any] | None = None) -> Notification:
    return log_notification(LogLevel.INFO, title, message, metadata)


def log_error(title: str, message: str, metadata: dict[str, Any] | None = None) -> Notification:
    return log_notification(LogLevel.ERROR, title, message, metadata)
