"""Builtin chat commands and the default registry."""

from whopbot.commands.builtin import admin, feed, moderation, polls, scheduling, stats
from whopbot.commands.builtin.common import parse_target
from whopbot.commands.builtin.help import execute_help
from whopbot.commands.builtin.static import static_commands
from whopbot.commands.registry import CommandDefinition, CommandRegistry, no_args


def builtin_commands() -> list[CommandDefinition]:
    """Every command the bot answers to, in help order."""
    return [
        CommandDefinition("help", no_args, execute_help, usage="/help",
                          description="List available commands"),
        *static_commands(),
        CommandDefinition("earnings", stats.parse_stats_target, stats.execute_earnings,
                          usage="/earnings [@user]", description="24-hour earnings"),
        CommandDefinition("referrals", stats.parse_stats_target, stats.execute_referrals,
                          usage="/referrals [@user]", description="24-hour referrals"),
        CommandDefinition("affiliatelink", stats.parse_stats_target, stats.execute_affiliatelink,
                          usage="/affiliatelink [@user]",
                          description="Affiliate link for this chat's access pass"),
        CommandDefinition("remindme", scheduling.parse_remindme, scheduling.execute_remindme,
                          usage="/remindme <what> in <number>m|h|d|w",
                          description="One-shot reminder by DM"),
        CommandDefinition("vote", polls.parse_vote, polls.execute_vote,
                          usage=polls.VOTE_USAGE, description="Vote in a poll"),

        # Admin-only
        CommandDefinition("announce", feed.parse_announce, feed.execute_announce,
                          admin_only=True, usage=feed.ANNOUNCE_USAGE,
                          description="Post to the announcement feed"),
        CommandDefinition("newlive", feed.parse_newlive, feed.execute_newlive,
                          admin_only=True, usage=feed.NEWLIVE_USAGE,
                          description="Set your livestream welcome message"),
        CommandDefinition("poll", polls.parse_poll, polls.execute_poll,
                          admin_only=True, usage=polls.POLL_USAGE,
                          description="Start a timed poll"),
        CommandDefinition("endpolls", no_args, polls.execute_end_polls,
                          admin_only=True, usage="/endpolls",
                          description="End every active poll"),
        CommandDefinition("mute", moderation.parse_mute, moderation.execute_mute,
                          admin_only=True, usage="/mute @user [duration][m|d|w] [reason]",
                          on_failure=moderation.log_failure("Error Muting User")),
        CommandDefinition("unmute", parse_target, moderation.execute_unmute,
                          admin_only=True, usage="/unmute @user",
                          on_failure=moderation.log_failure("Error Unmuting User")),
        CommandDefinition("ban", parse_target, moderation.execute_ban,
                          admin_only=True, usage="/ban @user [reason]",
                          on_failure=moderation.log_failure("Error Banning User")),
        CommandDefinition("unban", moderation.parse_unban, moderation.execute_unban,
                          admin_only=True, usage="/unban @user",
                          on_failure=moderation.log_failure("Error Unbanning User")),
        CommandDefinition("kick", parse_target, moderation.execute_kick,
                          admin_only=True, usage="/kick @user [reason]",
                          on_failure=moderation.log_failure("Error Kicking User")),
        CommandDefinition("whitelist", admin.parse_whitelist, admin.execute_whitelist,
                          admin_only=True, usage="/whitelist list|add @user|remove @user",
                          description="Cooldown whitelist",
                          on_failure=admin.whitelist_failure),
        CommandDefinition("adminwhitelist", admin.parse_whitelist, admin.execute_admin_whitelist,
                          admin_only=True, usage="/adminwhitelist list|add @user|remove @user",
                          description="Admin whitelist",
                          on_failure=admin.admin_whitelist_failure),
        CommandDefinition("cooldown", admin.parse_cooldown, admin.execute_cooldown,
                          admin_only=True, usage=admin.COOLDOWN_USAGE),
        CommandDefinition("transcript", feed.parse_transcript, feed.execute_transcript,
                          admin_only=True, usage="/transcript [count]",
                          on_failure=moderation.log_failure("Error Generating Transcript")),
        CommandDefinition("purge", feed.parse_purge, feed.execute_purge,
                          admin_only=True, usage="/purge [count]"),
        CommandDefinition("addfreedays", feed.parse_addfreedays, feed.execute_addfreedays,
                          admin_only=True, usage=feed.ADDFREEDAYS_USAGE,
                          on_failure=moderation.log_failure("Error Adding Free Days")),
        CommandDefinition("schedule", scheduling.parse_schedule, scheduling.execute_schedule,
                          admin_only=True, usage=scheduling.SCHEDULE_USAGE,
                          description="Recurring chat messages"),
        CommandDefinition("tasks", scheduling.parse_tasks, scheduling.execute_tasks,
                          admin_only=True, usage=scheduling.TASKS_USAGE,
                          description="Inspect and pause cron tasks"),
    ]


def build_registry() -> CommandRegistry:
    return CommandRegistry(builtin_commands())


__all__ = ["build_registry", "builtin_commands"]
