"""
Feed-level commands.

- /announce and /newlive for livestream hosts
- /purge and /transcript over recent feed history
- /addfreedays for membership extensions
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from loguru import logger

from whopbot.commands.builtin.common import (
    first_quoted,
    lookup_user,
    reply_failure,
    services_of,
    text_after_command,
)
from whopbot.commands.registry import CommandContext, CommandResult
from whopbot.errors import UsageError
from whopbot.hooks.service import Embed, EmbedField, Notification
from whopbot.platform.api import FeedPost
from whopbot.utils.formatting import format_date, plural

ANNOUNCE_USAGE = 'Usage: /announce "message" [highlight]'
NEWLIVE_USAGE = 'Usage: /newlive "Your welcome message" or /newlive Your welcome message'
ADDFREEDAYS_USAGE = "Usage: /addfreedays @username [days]"

DEFAULT_PURGE_COUNT = 10
MAX_PURGE_COUNT = 100
DEFAULT_TRANSCRIPT_COUNT = 50
MAX_TRANSCRIPT_COUNT = 500
HISTORY_BUFFER = 10  # extra posts fetched so the command itself can be skipped

TRANSCRIPT_COLOR = 0x4287F5
TRANSCRIPT_PREVIEW_CHARS = 1000
RULE = "=" * 80


def _quoted_or_rest(raw: str) -> str:
    return first_quoted(raw) or text_after_command(raw)


def _count_arg(raw: str, default: int, maximum: int) -> int:
    parts = raw.split()
    if len(parts) > 1 and parts[1].isdigit() and int(parts[1]) > 0:
        return min(int(parts[1]), maximum)
    return default


def _created_ms(post: FeedPost) -> int:
    try:
        return int(post.created_at)
    except (TypeError, ValueError):
        return 0


@dataclass
class AnnounceArgs:
    message: str
    highlighted: bool = False


def parse_announce(raw: str, mentioned_user_ids: list[str]) -> AnnounceArgs:
    return AnnounceArgs(message=_quoted_or_rest(raw), highlighted="highlight" in raw)


async def execute_announce(args: AnnounceArgs, ctx: CommandContext) -> CommandResult:
    if not args.message:
        return await reply_failure(ctx, ANNOUNCE_USAGE, "Missing announcement message")
    if ctx.feed_type != "livestream_feed":
        return await reply_failure(
            ctx, "The /announce command can only be used in livestream feeds."
        )

    feed_id = services_of(ctx).config.announcement_feed_id
    if not feed_id:
        raise RuntimeError("WHOP_ANNOUNCEMENT_FEED_ID is not set")

    if args.highlighted:
        formatted = f"📢 **ANNOUNCEMENT** 📢\n\n{args.message}"
    else:
        formatted = f"📢 Announcement: {args.message}"

    await ctx.send_message(feed_id, formatted, "chat_feed")
    await ctx.reply("Announcement sent successfully.")
    return CommandResult(success=True, message="Announcement sent.", message_sent=True)


@dataclass
class NewLiveArgs:
    message: str


def parse_newlive(raw: str, mentioned_user_ids: list[str]) -> NewLiveArgs:
    message = _quoted_or_rest(raw).strip()
    if not message:
        raise UsageError(NEWLIVE_USAGE)
    return NewLiveArgs(message)


async def execute_newlive(args: NewLiveArgs, ctx: CommandContext) -> CommandResult:
    services_of(ctx).livestream.set_live_message(ctx.user_id, args.message)
    await ctx.reply(f"✅ Your livestream welcome message has been set to: \"{args.message}\"")
    return CommandResult(
        success=True,
        message=f"Livestream welcome message set for user {ctx.user_id}",
        data={"user_id": ctx.user_id, "message": args.message},
        message_sent=True,
    )


@dataclass
class CountArgs:
    count: int


def parse_purge(raw: str, mentioned_user_ids: list[str]) -> CountArgs:
    return CountArgs(_count_arg(raw, DEFAULT_PURGE_COUNT, MAX_PURGE_COUNT))


def parse_transcript(raw: str, mentioned_user_ids: list[str]) -> CountArgs:
    return CountArgs(_count_arg(raw, DEFAULT_TRANSCRIPT_COUNT, MAX_TRANSCRIPT_COUNT))


async def execute_purge(args: CountArgs, ctx: CommandContext) -> CommandResult:
    services = services_of(ctx)
    platform = services.platform

    experience_id = await platform.get_feed_experience_id(ctx.feed_id)
    if not experience_id:
        return await reply_failure(
            ctx,
            "❌ Failed to get experience ID for this feed.",
            "Could not retrieve experience id",
        )

    issued_at_ms = int(services.timers.now() * 1000)
    posts = await platform.get_feed_posts(ctx.feed_id, ctx.feed_type, args.count + HISTORY_BUFFER)
    if not posts:
        return await reply_failure(ctx, "🚫 No messages found to delete.", "No messages found for purge")

    eligible = [p for p in posts if _created_ms(p) < issued_at_ms and p.id][:args.count]
    if not eligible:
        return await reply_failure(
            ctx, "🚫 No eligible messages found to delete.", "No eligible messages for delete"
        )

    post_ids = [p.id for p in eligible]
    try:
        await platform.delete_posts(post_ids, ctx.feed_id, ctx.feed_type)
    except Exception as e:
        logger.error(f"Error deleting messages in {ctx.feed_id}: {e}")
        await ctx.reply(f"❌ Failed to delete messages: {e}")
        return CommandResult(
            success=False,
            message=f"Failed to delete messages: {e}",
            message_sent=True,
        )

    logger.info(f"Purged {len(post_ids)} messages from {ctx.feed_id}")
    return CommandResult(
        success=True,
        message=f"Deleted {len(post_ids)} messages",
        data={"message_count": len(post_ids), "feed_id": ctx.feed_id},
        message_sent=True,
    )


def format_transcript(posts: list[FeedPost], feed_id: str, feed_type: str, generated: str) -> str:
    """Plain-text transcript, newest post first."""
    header = "\n".join([
        RULE,
        f"CHAT TRANSCRIPT - {feed_type.upper()}",
        f"Feed ID: {feed_id}",
        f"Generated: {generated}",
        f"Messages: {len(posts)}",
        RULE,
        "",
    ])

    lines = []
    for post in sorted(posts, key=_created_ms, reverse=True):
        username = post.username or "Unknown User"
        badge = " [ADMIN]" if post.is_poster_admin else ""
        content = post.content or "(No content)"
        lines.append(f"[{format_date(post.created_at)}] {username}{badge}: {content}")

    return f"{header}\n" + "\n\n".join(lines) + f"\n\n{RULE}"


async def execute_transcript(args: CountArgs, ctx: CommandContext) -> CommandResult:
    services = services_of(ctx)
    await ctx.reply(f"📑 Generating transcript of the last {args.count} messages...")

    issued_at_ms = int(services.timers.now() * 1000)
    posts = await services.platform.get_feed_posts(
        ctx.feed_id, ctx.feed_type, args.count + HISTORY_BUFFER
    )
    if not posts:
        return await reply_failure(
            ctx,
            "No messages found to include in the transcript.",
            "No messages found for transcript",
        )

    included = [
        p for p in posts
        if _created_ms(p) < issued_at_ms and not p.content.strip().startswith("/transcript")
    ][:args.count]

    generated = datetime.fromtimestamp(services.timers.now(), tz=timezone.utc).isoformat()
    transcript = format_transcript(included, ctx.feed_id, ctx.feed_type, generated)

    preview = transcript
    if len(preview) > TRANSCRIPT_PREVIEW_CHARS:
        preview = preview[:TRANSCRIPT_PREVIEW_CHARS] + "...\n\n[Transcript truncated for preview]"

    embed = Embed(
        title="📑 Chat Transcript Generated",
        description=f"A transcript has been generated for feed ID: {ctx.feed_id}",
        color=TRANSCRIPT_COLOR,
        fields=[
            EmbedField("Moderator", f"<@{ctx.user_id}>", inline=True),
            EmbedField("Messages", str(len(included)), inline=True),
            EmbedField("Generated", generated, inline=True),
        ],
        footer="Whop Moderation • Transcript",
    )
    delivered = await services.notifications.notify(Notification(
        channel="log",
        content=f"**Chat Transcript Requested by <@{ctx.user_id}>**\n```\n{preview}\n```",
        embeds=[embed],
    ))
    if not delivered:
        logger.warning(f"Transcript for {ctx.feed_id} was not delivered to the log channel")

    return CommandResult(
        success=True,
        message=f"Transcript generated with {len(included)} messages",
        data={"message_count": len(included), "feed_id": ctx.feed_id, "transcript": transcript},
        message_sent=True,
    )


@dataclass
class AddFreeDaysArgs:
    target_user_id: str
    days: int = 7


def parse_addfreedays(raw: str, mentioned_user_ids: list[str]) -> AddFreeDaysArgs:
    if not mentioned_user_ids:
        raise UsageError(ADDFREEDAYS_USAGE)

    days = 7
    for part in raw.split():
        if part.isdigit() and 0 < int(part) <= 365:
            days = int(part)
            break
    return AddFreeDaysArgs(mentioned_user_ids[0], days)


async def execute_addfreedays(args: AddFreeDaysArgs, ctx: CommandContext) -> CommandResult:
    if args.target_user_id == ctx.user_id:
        return await reply_failure(
            ctx, "You cannot add free days to yourself.", "Self-targeting not allowed"
        )

    platform = services_of(ctx).platform
    try:
        lookup = await platform.get_feed_memberships(ctx.feed_id, args.target_user_id)
        if lookup is None:
            return await reply_failure(
                ctx,
                "❌ Could not retrieve the required data for this operation.",
                "Failed to get required data",
            )

        username = lookup.user.handle
        membership = lookup.membership_for_experience()
        if membership is None:
            return await reply_failure(
                ctx,
                f"❌ User @{username} doesn't have a membership for this experience.",
                "User has no membership for this experience",
            )

        expires_at = await platform.add_free_days(membership.id, args.days)
    except Exception as e:
        logger.error(f"Error adding free days for {args.target_user_id}: {e}")
        shown = str(e)
        if "membership" not in shown:
            shown = "Failed to add free days. Please try again later."
        await ctx.reply(f"❌ {shown}")
        return CommandResult(
            success=False,
            message=str(e) or "Unknown error occurred",
            data={"target_user_id": args.target_user_id, "days": args.days},
            message_sent=True,
        )

    expiration = f" (now expires: {format_date(expires_at)})" if expires_at else ""
    await ctx.reply(
        f"✅ Added {plural(args.days, 'free day')} to @{username}'s membership{expiration}."
    )
    return CommandResult(
        success=True,
        message=f"Successfully added {args.days} free days to user's membership",
        data={
            "target_user_id": args.target_user_id,
            "username": username,
            "days": args.days,
            "membership_id": membership.id,
            "new_expires_at": expires_at,
        },
        message_sent=True,
    )
