"""
Moderation commands: ban, unban, mute, unmute and kick.

Each command replies in chat, then posts a moderation notification. Failures
that were not already classified as expected are logged to the log channel.
"""

import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from whopbot.commands.builtin.common import (
    TargetArgs,
    join_date,
    lookup_user,
    parse_target,
    reply_failure,
    services_of,
    text_after_mention,
)
from whopbot.commands.registry import CommandContext, CommandResult
from whopbot.errors import PlatformAPIError
from whopbot.hooks.notifications import log_info, moderation_notification
from whopbot.utils.formatting import plural

MUTE_DURATION = re.compile(r"\b(\d+)([mdw]?)\b", re.IGNORECASE)
MUTE_UNITS = {"m": (60, "minute"), "d": (86400, "day"), "w": (604800, "week")}


@dataclass
class MuteArgs:
    target_user_id: str = ""
    duration_seconds: int | None = None
    duration_text: str | None = None
    reason: str | None = None


def parse_mute(raw: str, mentioned_user_ids: list[str]) -> MuteArgs:
    if not mentioned_user_ids:
        return MuteArgs()

    args = MuteArgs(target_user_id=mentioned_user_ids[0])
    match = MUTE_DURATION.search(raw)
    if match:
        value = int(match.group(1))
        seconds, unit = MUTE_UNITS[(match.group(2) or "m").lower()]
        args.duration_seconds = value * seconds
        args.duration_text = f"for {plural(value, unit)}"
        reason = raw[match.end():].strip()
        if reason and reason != ",":
            args.reason = reason
    else:
        args.reason = text_after_mention(raw)
    return args


def parse_unban(raw: str, mentioned_user_ids: list[str]) -> TargetArgs:
    """Accepts a mention or a bare ``user_...`` id."""
    if mentioned_user_ids:
        return parse_target(raw, mentioned_user_ids)

    parts = raw.split()
    if len(parts) >= 2 and parts[1].startswith("user_"):
        return TargetArgs(parts[1], " ".join(parts[2:]) or None)
    return TargetArgs()


async def _notify_moderation(
    ctx: CommandContext,
    action: str,
    target_user_id: str,
    reason: str | None = None,
    duration_seconds: int | None = None,
) -> None:
    target = await lookup_user(ctx, target_user_id)
    moderator = await lookup_user(ctx, ctx.user_id)
    await services_of(ctx).notifications.notify(moderation_notification(
        action,
        target_user_id=target_user_id,
        target_username=target.handle,
        moderator_username=moderator.handle,
        reason=reason,
        duration_seconds=duration_seconds,
        target_name=target.display_name,
        joined=join_date(target),
    ))


async def execute_ban(args: TargetArgs, ctx: CommandContext) -> CommandResult:
    if not args.target_user_id:
        return await reply_failure(ctx, "Usage: /ban @username [reason]", "No user mentioned")
    if args.target_user_id == ctx.user_id:
        return await reply_failure(ctx, "You cannot ban yourself.", "Self-ban attempt rejected")

    reason_text = f" (Reason: {args.reason})" if args.reason else ""
    result = await services_of(ctx).platform.ban_user(args.target_user_id)

    if "already banned" in result:
        await ctx.reply("User is already banned.")
        return CommandResult(
            success=True,
            message="User is already banned",
            data={"target_user_id": args.target_user_id, "reason": args.reason},
            message_sent=True,
            skip_webhook=True,
        )

    await ctx.reply(f"User has been banned{reason_text}.")
    await _notify_moderation(ctx, "ban", args.target_user_id, reason=args.reason)

    return CommandResult(
        success=True,
        message=f"User has been banned{reason_text}",
        data={"target_user_id": args.target_user_id, "reason": args.reason},
        message_sent=True,
    )


async def execute_unban(args: TargetArgs, ctx: CommandContext) -> CommandResult:
    if not args.target_user_id:
        return await reply_failure(
            ctx,
            "Usage: /unban @username [reason] OR /unban user_id [reason]",
            "No user mentioned or user ID provided",
        )
    if args.target_user_id == ctx.user_id:
        return await reply_failure(ctx, "You cannot unban yourself.", "Self-unban attempt rejected")

    reason_text = f" (Reason: {args.reason})" if args.reason else ""
    try:
        await services_of(ctx).platform.unban_user(args.target_user_id)
    except PlatformAPIError as e:
        if "not banned" not in str(e) and "not found" not in str(e):
            raise
        await ctx.reply("User is not currently banned.")
        return CommandResult(
            success=True,
            message="User is not currently banned",
            data={"target_user_id": args.target_user_id},
            message_sent=True,
        )

    await ctx.reply(f"User has been unbanned{reason_text}.")
    await _notify_moderation(ctx, "unban", args.target_user_id, reason=args.reason)

    return CommandResult(
        success=True,
        message=f"User has been unbanned{reason_text}",
        data={"target_user_id": args.target_user_id, "reason": args.reason},
        message_sent=True,
    )


async def execute_mute(args: MuteArgs, ctx: CommandContext) -> CommandResult:
    if args.target_user_id == ctx.user_id:
        return await reply_failure(ctx, "You cannot mute yourself.", "Self-mute attempt rejected")
    if not args.target_user_id:
        return await reply_failure(
            ctx,
            "Must provide a target user to mute (e.g., @TestBot)",
            "Missing target user",
        )
    if not args.duration_seconds:
        return await reply_failure(
            ctx,
            "Must provide a duration for the mute (e.g., 5m, 2d, 1w)",
            "Missing duration",
        )

    services = services_of(ctx)
    muted_until = int(services.timers.now()) + args.duration_seconds
    duration_text = args.duration_text or "indefinitely"
    updated_text = duration_text.removeprefix("for ")
    reason_text = f" (Reason: {args.reason})" if args.reason else ""
    data = {
        "target_user_id": args.target_user_id,
        "duration": args.duration_seconds,
        "muted_until": muted_until,
        "reason": args.reason,
    }

    try:
        await services.platform.mute_user(args.target_user_id, muted_until)
    except PlatformAPIError as e:
        if "already muted" not in str(e):
            raise
        await ctx.reply(f"User is already muted. Duration updated to {updated_text}.")
        return CommandResult(
            success=True,
            message=f"User is already muted but duration updated to {updated_text}",
            data=data,
            message_sent=True,
        )

    await ctx.reply(f"User has been muted {duration_text}{reason_text}.")
    await _notify_moderation(
        ctx, "mute", args.target_user_id,
        reason=args.reason, duration_seconds=args.duration_seconds,
    )

    return CommandResult(
        success=True,
        message=f"User has been muted {duration_text}{reason_text}",
        data=data,
        message_sent=True,
    )


async def execute_unmute(args: TargetArgs, ctx: CommandContext) -> CommandResult:
    if not args.target_user_id:
        return await reply_failure(ctx, "Usage: /unmute @username", "No user mentioned")

    try:
        await services_of(ctx).platform.unmute_user(args.target_user_id)
    except PlatformAPIError as e:
        if "not muted" not in str(e) and "not found" not in str(e):
            raise
        await ctx.reply("User is not currently muted.")
        return CommandResult(
            success=True,
            message="User is not currently muted",
            data={"target_user_id": args.target_user_id},
            message_sent=True,
        )

    await ctx.reply("User has been unmuted.")
    await _notify_moderation(ctx, "unmute", args.target_user_id)

    return CommandResult(
        success=True,
        message="User has been unmuted",
        data={"target_user_id": args.target_user_id},
        message_sent=True,
    )


async def execute_kick(args: TargetArgs, ctx: CommandContext) -> CommandResult:
    if not args.target_user_id:
        return await reply_failure(ctx, "Usage: /kick @username [reason]", "No user mentioned")
    if args.target_user_id == ctx.user_id:
        return await reply_failure(ctx, "You cannot kick yourself.", "Self-kick attempt rejected")

    reason_text = f" (Reason: {args.reason})" if args.reason else ""
    result = await services_of(ctx).platform.kick_user(args.target_user_id)

    if "already kicked" in result:
        await ctx.reply("User has already been kicked.")
        return CommandResult(
            success=True,
            message="User has already been kicked",
            data={"target_user_id": args.target_user_id, "reason": args.reason},
            message_sent=True,
            skip_webhook=True,
        )

    await ctx.reply(f"User has been kicked{reason_text}.")
    await _notify_moderation(ctx, "kick", args.target_user_id, reason=args.reason)

    return CommandResult(
        success=True,
        message=f"User has been kicked{reason_text}",
        data={"target_user_id": args.target_user_id, "reason": args.reason},
        message_sent=True,
    )


def log_failure(title: str) -> Callable[[CommandResult, CommandContext, Any], Awaitable[None]]:
    """
    Build a failure hook that posts to the log channel.

    The hook records the target, reason and duration when the parsed
    arguments carry them.
    """
    async def hook(result: CommandResult, ctx: CommandContext, args: Any) -> None:
        if result.skip_webhook:
            return

        metadata = {
            "targetUserId": getattr(args, "target_user_id", None),
            "duration": getattr(args, "duration_seconds", None),
            "reason": getattr(args, "reason", None),
            "error": result.message,
        }
        delivered = await services_of(ctx).notifications.notify(
            log_info(title, result.message, metadata)
        )
        if not delivered:
            logger.warning(f"{title}: failure log was not delivered")

    return hook
