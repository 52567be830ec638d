"""Helpers shared by the builtin command handlers."""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from whopbot.commands.registry import CommandContext, CommandResult
from whopbot.platform.api import UserInfo
from whopbot.utils.formatting import format_date

if TYPE_CHECKING:
    from whopbot.app import BotServices

QUOTED = re.compile(r'"([^"]+)"')
MENTION = re.compile(r"@\w+")


def services_of(ctx: CommandContext) -> "BotServices":
    if ctx.services is None:
        raise RuntimeError("Command context has no services attached")
    return ctx.services


def first_quoted(raw: str) -> str | None:
    match = QUOTED.search(raw)
    return match.group(1) if match else None


def text_after_command(raw: str) -> str:
    """Everything after the command name, stripped."""
    parts = raw.split(None, 1)
    return parts[1].strip() if len(parts) > 1 else ""


def text_after_mention(raw: str) -> str | None:
    """Free text following the first @mention, or None."""
    match = MENTION.search(raw)
    if not match:
        return None
    text = raw[match.end():].strip()
    if not text or text == ",":
        return None
    return text


@dataclass
class TargetArgs:
    target_user_id: str = ""
    reason: str | None = None


def parse_target(raw: str, mentioned_user_ids: list[str]) -> TargetArgs:
    """First mentioned user plus the free-text reason after the mention."""
    if not mentioned_user_ids:
        return TargetArgs()
    return TargetArgs(mentioned_user_ids[0], text_after_mention(raw))


async def lookup_user(ctx: CommandContext, user_id: str) -> UserInfo:
    """Fetch a user's profile, falling back to the bare id on failure."""
    try:
        return await services_of(ctx).platform.get_user(user_id)
    except Exception as e:
        logger.warning(f"Error getting user info for {user_id}: {e}")
        return UserInfo(id=user_id)


def join_date(user: UserInfo) -> str:
    return format_date(user.created_at) if user.created_at else "Unknown"


async def reply_failure(
    ctx: CommandContext,
    reply: str,
    message: str | None = None,
    skip_webhook: bool = True,
) -> CommandResult:
    """Send ``reply`` to the feed and return a failed result."""
    await ctx.reply(reply)
    return CommandResult(
        success=False,
        message=message or reply,
        message_sent=True,
        skip_webhook=skip_webhook,
    )
