"""Whitelist and cooldown management commands."""

import math
from dataclasses import dataclass

from loguru import logger

from whopbot.commands.builtin.common import (
    join_date,
    lookup_user,
    reply_failure,
    services_of,
)
from whopbot.commands.registry import CommandContext, CommandResult
from whopbot.errors import UsageError
from whopbot.hooks.notifications import log_info, moderation_notification
from whopbot.utils.formatting import plural

COOLDOWN_USAGE = "Usage: /cooldown get | /cooldown [minutes] set | /cooldown notice [minutes]"
MAX_COOLDOWN_MINUTES = 1440


@dataclass
class WhitelistArgs:
    action: str = "list"  # list, add or remove
    user_id: str | None = None


def parse_whitelist(raw: str, mentioned_user_ids: list[str]) -> WhitelistArgs:
    parts = raw.lower().split()
    if len(parts) == 1 or parts[1] not in ("add", "remove"):
        return WhitelistArgs("list")

    action = parts[1]
    if mentioned_user_ids:
        return WhitelistArgs(action, mentioned_user_ids[0])
    if len(parts) >= 3:
        return WhitelistArgs(action, raw.split()[2].replace("@", ""))
    return WhitelistArgs(action)


async def execute_whitelist(args: WhitelistArgs, ctx: CommandContext) -> CommandResult:
    """Manage the cooldown whitelist."""
    services = services_of(ctx)
    registry = services.cooldown_whitelist
    user_id = args.user_id

    if args.action == "list":
        members = registry.list()
        if members:
            message = "📝 Cooldown whitelist:\n" + ", ".join(f"<@{m}>" for m in members)
        else:
            message = "🚫 No users are currently whitelisted."
        await ctx.reply(message)
        return CommandResult(
            success=True,
            message="Whitelist displayed successfully",
            data={"whitelisted_users": members},
            message_sent=True,
        )

    if args.action == "add":
        if not user_id:
            return await reply_failure(
                ctx, "✋ Who should I whitelist? Please provide a user to add.", "No user ID provided"
            )
        if registry.is_member(user_id):
            await ctx.reply(f"ℹ️ {user_id} is already whitelisted.")
            return CommandResult(
                success=True,
                message=f"User {user_id} already on cooldown whitelist",
                data={"user_id": user_id, "action": "already_added"},
                message_sent=True,
            )

        registry.add(user_id)
        await ctx.reply(f"User {user_id} added to the cooldown whitelist.")
        await _notify_whitelist(ctx, "whitelist", user_id, "Added to cooldown whitelist")
        return CommandResult(
            success=True,
            message=f"User {user_id} added to the cooldown whitelist",
            data={"user_id": user_id, "action": "added"},
            message_sent=True,
        )

    if not user_id:
        return await reply_failure(
            ctx, "✂️ Who should I remove? Please provide a user to remove.", "No user ID provided"
        )

    removed = registry.remove(user_id)
    if removed:
        await _notify_whitelist(ctx, "unwhitelist", user_id, "Removed from cooldown whitelist")
        message = f"✅ {user_id} has been removed from the cooldown whitelist."
    else:
        message = f"ℹ️ {user_id} wasn't on cooldown whitelist."
    await ctx.reply(message)
    return CommandResult(
        success=True,
        message=message,
        data={"user_id": user_id, "action": "removed", "was_removed": removed},
        message_sent=True,
    )


async def execute_admin_whitelist(args: WhitelistArgs, ctx: CommandContext) -> CommandResult:
    """Manage the admin whitelist."""
    services = services_of(ctx)
    registry = services.admin_whitelist
    user_id = args.user_id

    if args.action == "list":
        members = registry.list()
        if members:
            message = f"Admin-whitelisted user IDs: {', '.join(members)}"
        else:
            message = "No users are currently admin-whitelisted."
        await ctx.reply(message)
        return CommandResult(
            success=True,
            message="Admin whitelist displayed successfully",
            data={"whitelisted_users": members},
            message_sent=True,
        )

    if not user_id:
        where = "add to" if args.action == "add" else "remove from"
        return await reply_failure(
            ctx, f"Please provide a user ID to {where} the admin whitelist.", "No user ID provided"
        )

    target = await lookup_user(ctx, user_id)
    name = target.display_name

    if args.action == "add":
        if registry.is_member(user_id):
            await ctx.reply(f"{name} is already on the admin whitelist.")
            return CommandResult(
                success=True,
                message=f"{name} already on admin whitelist",
                data={"user_id": user_id, "action": "already_added"},
                message_sent=True,
            )

        registry.add(user_id)
        await ctx.reply(
            f"{name} was added to the admin whitelist!\n"
            "They can now use admin commands without having the admin badge."
        )
        await _notify_whitelist(
            ctx, "admin whitelist", user_id, "Added to admin whitelist", retry=True
        )
        return CommandResult(
            success=True,
            message=f"{name} added to the admin whitelist",
            data={"user_id": user_id, "action": "added"},
            message_sent=True,
        )

    removed = registry.remove(user_id)
    if removed:
        message = f"{name} was removed from the admin whitelist! They can no longer use admin commands."
    else:
        message = f"{name} was not on the admin whitelist."
    await ctx.reply(message)
    if removed:
        await _notify_whitelist(
            ctx, "admin unwhitelist", user_id, "Removed from admin whitelist", retry=True
        )
    return CommandResult(
        success=True,
        message=message,
        data={"user_id": user_id, "action": "removed", "was_removed": removed},
        message_sent=True,
    )


async def _notify_whitelist(
    ctx: CommandContext,
    action: str,
    user_id: str,
    reason: str,
    retry: bool = False,
) -> None:
    services = services_of(ctx)
    target = await lookup_user(ctx, user_id)
    moderator = await lookup_user(ctx, ctx.user_id)
    notification = moderation_notification(
        action,
        target_user_id=user_id,
        target_username=target.handle,
        moderator_username=moderator.handle,
        reason=reason,
        target_name=target.display_name,
        joined=join_date(target),
    )

    if not retry:
        await services.notifications.notify(notification)
        return

    try:
        await services.retry_policy.run(lambda: services.notifications.send(notification))
    except Exception as e:
        logger.warning(f"Giving up on {action} notification for {user_id}: {e}")


async def whitelist_failure(result: CommandResult, ctx: CommandContext, args: WhitelistArgs) -> None:
    if result.message_sent or result.skip_webhook:
        return
    await services_of(ctx).notifications.notify(log_info(
        "Error Managing Whitelist",
        result.message,
        {"userId": args.user_id, "error": result.message},
    ))


async def admin_whitelist_failure(
    result: CommandResult, ctx: CommandContext, args: WhitelistArgs
) -> None:
    if result.message_sent or result.skip_webhook:
        return
    await ctx.reply(f"Error managing admin whitelist: {result.message or 'Unknown error'}")


@dataclass
class CooldownArgs:
    action: str  # get, set or notice
    minutes: float = 0


def parse_cooldown(raw: str, mentioned_user_ids: list[str]) -> CooldownArgs:
    parts = raw.lower().split()
    if len(parts) < 2:
        raise UsageError(COOLDOWN_USAGE)

    if parts[1] == "get":
        return CooldownArgs("get")

    if parts[1] == "notice":
        if len(parts) < 3:
            raise UsageError(COOLDOWN_USAGE)
        return CooldownArgs("notice", _parse_minutes(parts[2]))

    if len(parts) < 3 or parts[2] != "set":
        raise UsageError(COOLDOWN_USAGE)
    return CooldownArgs("set", _parse_minutes(parts[1]))


def _parse_minutes(value: str) -> float:
    try:
        minutes = float(value)
    except ValueError as e:
        raise UsageError(COOLDOWN_USAGE) from e
    if not math.isfinite(minutes):
        raise UsageError(COOLDOWN_USAGE)
    if minutes < 0:
        raise UsageError("Cooldown minutes cannot be negative")
    if minutes > MAX_COOLDOWN_MINUTES:
        raise UsageError(f"Cooldown minutes cannot exceed {MAX_COOLDOWN_MINUTES} (one day)")
    return minutes


def _minutes_text(minutes: float) -> str:
    if minutes == int(minutes):
        return plural(int(minutes), "minute")
    return f"{minutes:g} minutes"


async def execute_cooldown(args: CooldownArgs, ctx: CommandContext) -> CommandResult:
    cooldowns = services_of(ctx).cooldowns

    if args.action == "get":
        seconds = cooldowns.cooldown_period
        message = (
            f"Chat cooldown period is {_minutes_text(seconds / 60)} ({seconds:g} seconds). "
            f"Cooldown notices are sent at most every {_minutes_text(cooldowns.notice_period)}."
        )
        await ctx.reply(message)
        return CommandResult(success=True, message=message, message_sent=True)

    if args.action == "notice":
        cooldowns.set_notice_period(args.minutes)
        message = f"✅ Cooldown notices will be sent at most every {_minutes_text(args.minutes)}."
        await ctx.reply(message)
        return CommandResult(success=True, message=message, message_sent=True)

    seconds = args.minutes * 60
    cooldowns.set_cooldown_period(seconds)
    message = (
        f"✅ Chat commands cooldown period set to {_minutes_text(args.minutes)} "
        f"({seconds:g} seconds)."
    )
    await ctx.reply(message)
    return CommandResult(success=True, message=message, message_sent=True)
