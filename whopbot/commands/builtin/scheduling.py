"""Recurring messages, one-shot reminders and cron task control."""

import re
import uuid
from dataclasses import dataclass

from loguru import logger

from whopbot.commands.builtin.common import reply_failure, services_of
from whopbot.commands.registry import CommandContext, CommandResult
from whopbot.errors import (
    IntervalTooLargeError,
    MessageTooLongError,
    TooManySchedulesError,
    UsageError,
)
from whopbot.utils.formatting import plural

SCHEDULE_USAGE = "Usage: schedule \"message\" every <number>m|h|d"
SCHEDULE_MESSAGE = re.compile(r'"([^"]+)"')
SCHEDULE_INTERVAL = re.compile(r"every\s+(\d+)([mhd])", re.IGNORECASE)

REMINDER_TIME = re.compile(r"\s+in\s+(\d+)\s*([mdwh])\s*$", re.IGNORECASE)
REMINDER_UNITS = {
    "m": (60, "minute"),
    "h": (3600, "hour"),
    "d": (86400, "day"),
    "w": (604800, "week"),
}
MAX_REMINDER_SECONDS = 2147483

TASKS_USAGE = "Usage: /tasks list | /tasks pause <id> | /tasks resume <id>"


@dataclass
class ScheduleArgs:
    action: str  # "create", "stop" or "list"
    message: str = ""
    interval: int = 0
    unit: str = ""


def parse_schedule(raw: str, mentioned_user_ids: list[str]) -> ScheduleArgs:
    parts = raw.split()
    if len(parts) >= 2 and parts[1].lower() in ("stop", "list"):
        return ScheduleArgs(action=parts[1].lower())

    message = SCHEDULE_MESSAGE.search(raw)
    interval = SCHEDULE_INTERVAL.search(raw)
    if not message or not interval or int(interval.group(1)) <= 0:
        raise UsageError(SCHEDULE_USAGE)

    return ScheduleArgs(
        action="create",
        message=message.group(1),
        interval=int(interval.group(1)),
        unit=interval.group(2).lower(),
    )


async def execute_schedule(args: ScheduleArgs, ctx: CommandContext) -> CommandResult:
    scheduler = services_of(ctx).schedules

    if args.action == "stop":
        stopped = scheduler.stop_all_for_feed(ctx.feed_id)
        if stopped:
            await ctx.reply(f"🛑 Stopped {plural(stopped, 'scheduled message')} in this chat.")
        else:
            await ctx.reply("ℹ️ No scheduled messages found in this chat.")
        return CommandResult(
            success=True,
            message=f"Stopped {stopped} schedules",
            data={"stopped": stopped},
            message_sent=True,
        )

    if args.action == "list":
        jobs = scheduler.list_for_feed(ctx.feed_id)
        if not jobs:
            await ctx.reply("ℹ️ No active scheduled messages in this chat.")
        else:
            lines = [
                f"{i}. \"{job.message}\" (every {job.interval}{job.unit}, "
                f"started {job.created_at.strftime('%H:%M:%S')})"
                for i, job in enumerate(jobs, start=1)
            ]
            await ctx.reply(f"📋 Active scheduled messages ({len(jobs)}):\n" + "\n".join(lines))
        return CommandResult(
            success=True,
            message=f"Listed {len(jobs)} schedules",
            data={"count": len(jobs)},
            message_sent=True,
        )

    try:
        job = scheduler.schedule(
            ctx.feed_id,
            ctx.feed_type,
            ctx.user_id,
            args.message,
            args.interval,
            args.unit,
        )
    except MessageTooLongError:
        return await reply_failure(
            ctx, "⚠️ Message too long. Maximum 500 characters allowed.", "Message too long"
        )
    except TooManySchedulesError:
        return await reply_failure(
            ctx,
            "⚠️ Maximum 10 schedules per chat. Please stop some existing schedules first.",
            "Too many schedules",
        )
    except IntervalTooLargeError:
        return await reply_failure(
            ctx,
            "⏱️ Maximum interval is 7 days. Please choose a shorter interval.",
            "Interval too large",
        )

    await ctx.reply(
        f"✅ Scheduled message \"{job.message}\" to repeat every {job.duration_text}.\n"
        "🔧 Use `/schedule stop` to stop all schedules in this chat."
    )
    return CommandResult(
        success=True,
        message=f"Scheduled message every {job.duration_text}",
        data={"job_id": job.id},
        message_sent=True,
    )


@dataclass
class RemindMeArgs:
    message: str = ""
    duration_seconds: int = 0  # 0 when no time could be parsed
    duration_text: str = ""


def parse_remindme(raw: str, mentioned_user_ids: list[str]) -> RemindMeArgs:
    """
    Parse ``/remindme <what> in <number><m|h|d|w>``.

    Never raises: the executor answers each malformed shape with its own hint.
    """
    match = REMINDER_TIME.search(raw)
    if not match:
        return RemindMeArgs()

    value = int(match.group(1))
    seconds, unit = REMINDER_UNITS[match.group(2).lower()]

    head = raw[:match.start()].strip()
    message = head[len("/remindme"):].strip()
    return RemindMeArgs(
        message=message,
        duration_seconds=value * seconds,
        duration_text=plural(value, unit),
    )


async def execute_remindme(args: RemindMeArgs, ctx: CommandContext) -> CommandResult:
    if not args.duration_seconds:
        return await reply_failure(
            ctx,
            "❓ I didn't catch the time. Try: /remindme [what] in [number][m|h|d|w] "
            "(/remindme call Eric in 10m)",
            "Invalid time format",
        )
    if args.duration_seconds > MAX_REMINDER_SECONDS:
        return await reply_failure(
            ctx,
            "⏱️ That's a bit too far out! Please pick a shorter time frame",
            "Duration too large",
        )
    if not args.message:
        return await reply_failure(
            ctx,
            "✏️ You didn't tell me what to remind you about. What should I remind you to do?",
            "Reminder text missing",
        )

    platform = services_of(ctx).platform
    user_id = ctx.user_id
    message = args.message

    async def deliver() -> None:
        try:
            dm_feed_id = await platform.create_dm_channel(user_id)
            await platform.send_message(dm_feed_id, f"🔔 **Reminder:** {message}", "dms_feed")
            logger.info(f"Reminder sent to user {user_id} in DM {dm_feed_id}")
        except Exception as e:
            logger.error(f"Error sending reminder to {user_id}: {e}")

    services_of(ctx).timers.call_later(
        f"reminder:{user_id}:{uuid.uuid4().hex[:8]}",
        args.duration_seconds,
        deliver,
    )

    await ctx.reply(f"✅ I'll remind you \"{message}\" in {args.duration_text}.")
    return CommandResult(
        success=True,
        message=f"Reminder set for {args.duration_text}",
        data={"message": message, "duration_seconds": args.duration_seconds},
        message_sent=True,
    )


@dataclass
class TasksArgs:
    action: str = "list"
    task_id: str | None = None


def parse_tasks(raw: str, mentioned_user_ids: list[str]) -> TasksArgs:
    parts = raw.split()
    if len(parts) < 2:
        return TasksArgs()

    action = parts[1].lower()
    if action == "list":
        return TasksArgs()
    if action in ("pause", "resume") and len(parts) >= 3:
        return TasksArgs(action=action, task_id=parts[2])
    raise UsageError(TASKS_USAGE)


async def execute_tasks(args: TasksArgs, ctx: CommandContext) -> CommandResult:
    cron = services_of(ctx).cron

    if args.action == "list":
        tasks = cron.get_all_tasks()
        if not tasks:
            await ctx.reply("ℹ️ No scheduled tasks.")
        else:
            lines = []
            for task in tasks:
                state = "active" if task.is_active else "paused"
                next_run = task.next_run.strftime("%Y-%m-%d %H:%M") if task.next_run else "-"
                lines.append(
                    f"• {task.id} ({task.name}) `{task.expression}` {state}, next: {next_run}"
                )
            await ctx.reply(f"🗓️ Scheduled tasks ({len(tasks)}):\n" + "\n".join(lines))
        return CommandResult(
            success=True,
            message=f"Listed {len(tasks)} tasks",
            data={"tasks": [t.to_dict() for t in tasks]},
            message_sent=True,
        )

    if args.action == "pause":
        changed = cron.pause_task(args.task_id)
    else:
        changed = cron.resume_task(args.task_id)
    if not changed:
        return await reply_failure(
            ctx,
            f"❓ No task {args.task_id} to {args.action}.",
            f"Task not {args.action}d",
        )

    await ctx.reply(f"✅ Task {args.task_id} {args.action}d.")
    return CommandResult(
        success=True,
        message=f"Task {args.action}d",
        data={"task_id": args.task_id},
        message_sent=True,
    )
