"""Earnings, referral and affiliate link lookups."""

from dataclasses import dataclass
from urllib.parse import quote

from loguru import logger

from whopbot.commands.builtin.common import lookup_user, reply_failure, services_of
from whopbot.commands.registry import CommandContext, CommandResult
from whopbot.errors import PlatformAPIError
from whopbot.utils.formatting import format_currency

# Punctuation kept unescaped in affiliate link parts
URI_SAFE = "!*'()"


@dataclass
class StatsArgs:
    target_user_id: str | None = None  # None means the invoking user


def parse_stats_target(raw: str, mentioned_user_ids: list[str]) -> StatsArgs:
    return StatsArgs(mentioned_user_ids[0] if mentioned_user_ids else None)


async def execute_earnings(args: StatsArgs, ctx: CommandContext) -> CommandResult:
    target_id = args.target_user_id or ctx.user_id
    is_self = target_id == ctx.user_id

    user = await lookup_user(ctx, target_id)
    reports = await services_of(ctx).platform.get_user_earnings(target_id)

    if not reports:
        message = "Your earnings are hidden." if is_self else f"@{user.handle} has their earnings hidden."
        await ctx.reply(message)
        return CommandResult(
            success=True,
            message="No earnings found",
            data={"target_user_id": target_id, "username": user.handle},
            message_sent=True,
        )

    total_24h = sum(report.last_24_hours for report in reports)
    if is_self:
        message = f"💰 Your 24-hour Earnings {format_currency(total_24h)}"
    else:
        message = f"💰 24-hour Earnings for @{user.handle} {format_currency(total_24h)}"
    await ctx.reply(message)

    return CommandResult(
        success=True,
        message="Earnings data fetched successfully",
        data={"target_user_id": target_id, "username": user.handle, "total_24h": total_24h},
        message_sent=True,
    )


async def execute_referrals(args: StatsArgs, ctx: CommandContext) -> CommandResult:
    target_id = args.target_user_id or ctx.user_id
    is_self = target_id == ctx.user_id

    user = await lookup_user(ctx, target_id)
    count = await services_of(ctx).platform.get_user_referrals(target_id)

    if count == 0 and is_self:
        message = (
            "You haven't referred anyone in the last 24 hours. "
            "Share your affiliate link to start earning!"
        )
    elif count == 0:
        message = f"@{user.handle} hasn't referred anyone in the last 24 hours."
    elif is_self:
        message = f"🔄 Your referrals in the last 24 hours: {count}"
    else:
        message = f"🔄 Referrals for @{user.handle} in the last 24 hours: {count}"
    await ctx.reply(message)

    return CommandResult(
        success=True,
        message="Referrals data fetched successfully",
        data={"target_user_id": target_id, "username": user.handle, "referral_count": count},
        message_sent=True,
    )


def affiliate_link(route: str, username: str) -> str:
    """Referral URL for an access pass, e.g. https://whop.com/my-pass/?a=bob"""
    return f"https://whop.com/{quote(route, safe=URI_SAFE)}/?a={quote(username, safe=URI_SAFE)}"


async def execute_affiliatelink(args: StatsArgs, ctx: CommandContext) -> CommandResult:
    target_id = args.target_user_id or ctx.user_id
    is_self = target_id == ctx.user_id
    platform = services_of(ctx).platform

    try:
        experience_id = await platform.get_feed_experience_id(ctx.feed_id)
        if not experience_id:
            return await reply_failure(
                ctx,
                "❌ Could not determine the experience for this chat.",
                "Could not determine experience",
            )

        passes = await platform.get_experience_access_passes(experience_id)
        if passes is None:
            return await reply_failure(
                ctx,
                "❌ Could not find access pass for this experience.",
                "Could not get access pass title",
            )
        if not passes:
            return await reply_failure(
                ctx,
                "❌ No access passes available for this experience.",
                "No access passes available",
            )

        try:
            user = await platform.get_user(target_id)
        except PlatformAPIError as e:
            logger.warning(f"Error getting user info for {target_id}: {e}")
            return await reply_failure(
                ctx, "❌ Unable to find that user.", "User not found", skip_webhook=False
            )

        access_pass = passes[0]
        link = affiliate_link(access_pass.route, user.handle)
        if is_self:
            message = f"🔗 Your {access_pass.title} Affiliate Link\n{link}"
        else:
            message = f"🔗 {access_pass.title} Affiliate Link for @{user.handle}\n{link}"
        await ctx.reply(f"{message}\n\n💰 Share this link to earn commissions!")
    except Exception as e:
        logger.error(f"Error generating affiliate link: {e}")
        return await reply_failure(
            ctx,
            "❌ Failed to generate affiliate link. Please try again later.",
            str(e) or "Unknown error occurred",
            skip_webhook=False,
        )

    return CommandResult(
        success=True,
        message="Affiliate link generated successfully",
        data={"target_user_id": target_id, "username": user.handle, "affiliate_link": link},
        message_sent=True,
    )
