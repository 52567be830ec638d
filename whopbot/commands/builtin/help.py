"""The /help command."""

from typing import Any

from whopbot.commands.registry import CommandContext, CommandResult

USER_COMMANDS = [
    "/help",
    "/support",
    "/clip",
    "/geniusbar",
    "/new",
    "/create",
    "/payouts",
    "/campaigns",
    "/graphics",
    "/leaderboard",
    "/earnings @[username] | /earnings (for yourself)",
    "/referrals @[username] | /referrals (for yourself)",
    "/affiliatelink @[username] | /affiliatelink (for yourself)",
    '/remindme "message" in <number>m|h|d|w',
    "/vote <poll id> <option number>",
    "/zap",
    "/eric",
]

ADMIN_COMMANDS = [
    '/announce "message" [highlight]',
    '/poll "question" "opt1" "opt2" ... [minutes]',
    "/endpolls",
    '/newlive "message"',
    "/mute @[username] [duration][m|d|w]   (e.g., 5m, 2d, 1w for minutes, days, weeks)",
    "/unmute @[username]",
    "/ban @[username] [reason]",
    "/unban @[username]",
    "/kick @[username] [reason]",
    "/adminwhitelist list | /adminwhitelist add @[username] | /adminwhitelist remove @[username]",
    "/whitelist list | /whitelist add @[username] | /whitelist remove @[username]",
    "/cooldown [minutes] set | /cooldown get | /cooldown notice [minutes]",
    "/transcript [count]   (fetches the last [count] messages, default 50)",
    "/purge [count]   (deletes the last [count] messages, default 10)",
    "/addfreedays @[username] <number>",
    '/schedule "message" every <number>m|h|d | /schedule list | /schedule stop',
    "/tasks list | /tasks pause <id> | /tasks resume <id>",
]


def help_text(is_admin: bool) -> str:
    if not is_admin:
        return "Available commands\n" + "\n".join(USER_COMMANDS)
    return (
        "Regular commands\n" + "\n".join(USER_COMMANDS)
        + "\n\nAdmin-only commands\n" + "\n".join(ADMIN_COMMANDS)
    )


async def execute_help(args: Any, ctx: CommandContext) -> CommandResult:
    await ctx.reply(help_text(ctx.is_admin))
    return CommandResult(success=True, message="Help message sent to chat.", message_sent=True)
