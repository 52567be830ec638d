"""Poll commands: /poll, /vote and /endpolls."""

import re
from dataclasses import dataclass
from typing import Any

from loguru import logger

from whopbot.commands.builtin.common import QUOTED, lookup_user, reply_failure, services_of
from whopbot.commands.registry import CommandContext, CommandResult
from whopbot.errors import PollError, UsageError
from whopbot.hooks.notifications import poll_created_notification
from whopbot.polls.engine import PollOption
from whopbot.utils.formatting import plural

POLL_USAGE = 'Usage: /poll "Question" "Option 1" "Option 2" [duration in minutes]'
VOTE_USAGE = "Usage: /vote <poll id> <option number>"

DEFAULT_DURATION_MINUTES = 5
MAX_DURATION_MINUTES = 1440


@dataclass
class PollArgs:
    question: str
    options: list[str]
    duration_minutes: int = DEFAULT_DURATION_MINUTES


def parse_poll(raw: str, mentioned_user_ids: list[str]) -> PollArgs:
    """
    Parse ``/poll "question" "opt1" "opt2" ... [minutes]``.

    The duration is the first number after the last quote, clamped to
    1..1440 minutes.
    """
    quoted = QUOTED.findall(raw)
    if len(quoted) < 3:
        raise UsageError(POLL_USAGE)

    duration = DEFAULT_DURATION_MINUTES
    match = re.search(r"\b(\d+)m?\b", raw[raw.rfind('"') + 1:])
    if match:
        duration = min(max(int(match.group(1)), 1), MAX_DURATION_MINUTES)

    return PollArgs(question=quoted[0], options=quoted[1:], duration_minutes=duration)


async def execute_poll(args: PollArgs, ctx: CommandContext) -> CommandResult:
    services = services_of(ctx)
    engine = services.polls

    poll_id = engine.new_poll_id()
    options = [PollOption(id=str(i), text=text) for i, text in enumerate(args.options, start=1)]

    try:
        engine.create_poll(
            poll_id,
            args.question,
            options,
            creator_id=ctx.user_id,
            feed_id=ctx.feed_id,
            duration_minutes=args.duration_minutes,
            feed_type=ctx.feed_type,
        )
    except PollError as e:
        return await reply_failure(
            ctx,
            f"Error creating poll: {e}",
            f"Failed to create poll: {e}",
            skip_webhook=False,
        )

    creator = await lookup_user(ctx, ctx.user_id)
    numbered = "\n".join(f"{opt.id}. {opt.text}" for opt in options)
    await ctx.reply(
        f"📊 **New Poll by @{creator.handle}**\n\n**{args.question}**\n\n{numbered}\n\n"
        f"Poll ID: {poll_id}\nDuration: {plural(args.duration_minutes, 'minute')}\n\n"
        f"Vote using: /vote {poll_id} [option number]"
    )

    await services.notifications.notify(poll_created_notification(
        poll_id,
        args.question,
        options,
        creator_id=ctx.user_id,
        creator_username=creator.handle,
        duration_minutes=args.duration_minutes,
    ))

    return CommandResult(
        success=True,
        message=f"Poll created successfully with ID: {poll_id}",
        data={
            "poll_id": poll_id,
            "question": args.question,
            "options": [opt.text for opt in options],
            "duration_minutes": args.duration_minutes,
        },
        message_sent=True,
    )


@dataclass
class VoteArgs:
    poll_id: str
    option_id: str


def parse_vote(raw: str, mentioned_user_ids: list[str]) -> VoteArgs:
    parts = raw.split()
    if len(parts) < 3 or not parts[2].isdigit():
        raise UsageError(VOTE_USAGE)
    return VoteArgs(poll_id=parts[1], option_id=str(int(parts[2])))


async def execute_vote(args: VoteArgs, ctx: CommandContext) -> CommandResult:
    engine = services_of(ctx).polls
    poll = engine.get_poll(args.poll_id)

    if poll is None:
        return await reply_failure(ctx, f"❓ No poll found with ID {args.poll_id}.", "Poll not found")
    if not poll.is_active:
        return await reply_failure(ctx, "⏱️ That poll has already ended.", "Poll ended")

    if not engine.cast_vote(args.poll_id, ctx.user_id, args.option_id):
        return await reply_failure(
            ctx,
            f"❓ Pick an option between 1 and {len(poll.options)}.",
            "Unknown option",
        )

    option = poll.option(args.option_id)
    await ctx.reply(f"✅ Vote recorded for \"{option.text}\".")
    logger.debug(f"Vote from {ctx.user_id} recorded in poll {args.poll_id}")
    return CommandResult(
        success=True,
        message="Vote recorded",
        data={"poll_id": args.poll_id, "option_id": args.option_id},
        message_sent=True,
    )


async def execute_end_polls(args: Any, ctx: CommandContext) -> CommandResult:
    ended = await services_of(ctx).polls.end_all_polls()
    if ended:
        message = f"🛑 Ended {plural(ended, 'active poll')}."
    else:
        message = "ℹ️ There are no active polls."
    await ctx.reply(message)
    return CommandResult(
        success=True,
        message=f"Ended {ended} polls",
        data={"ended": ended},
        message_sent=True,
    )
