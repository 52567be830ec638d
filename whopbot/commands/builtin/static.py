"""Canned-response commands and the /new onboarding alias."""

import random
from typing import Any

from whopbot.commands.registry import (
    CommandContext,
    CommandDefinition,
    CommandResult,
    no_args,
)

STATIC_RESPONSES: dict[str, str] = {
    "support": (
        "Need help with anything else? Our live support team is available 24/7. "
        "Real humans, real fast: https://whop.com/support"
    ),
    "clip": (
        "Want to get clipping? It’s a great way to make money, here’s the full "
        "guide to help you start: https://whop.com/whop-clips"
    ),
    "geniusbar": (
        "Need live help, feedback, or just want to hang out? Come through to the "
        "Genius Bar stream where we’re live every day from 8am to 4pm PST: "
        "https://whop.com/whop/genius-bar-BGSm3uHAQomIK3/app/"
    ),
    "create": (
        "Whenever you’re ready to launch your own business, here’s where you can "
        "create your whop. It’s fully free to set up: https://whop.new"
    ),
    "payouts": (
        "Here’s where you can see your personal balance and withdraw! Just set up "
        "Whop Payments by following the steps here: https://whop.com/@me/settings/balance/"
    ),
    "campaigns": (
        "Here’s where you can find all of our active content campaigns, join the ones "
        "you find interesting and head over to their earn tab to see their requirements: "
        "https://whop.com/discover/explore/content-rewards/"
    ),
    "graphics": (
        "Need some clean graphics for your whop? We’ve got a free design service that’s "
        "super helpful, you should definitely check it out: "
        "https://whop.com/whop-design-services/"
    ),
    "leaderboard": (
        "If you're curious what people are earning, feel free to check out the "
        "leaderboard! It's super motivating: https://whop.com/leaderboard/"
    ),
    "zap": "coolest dude in the U!",
    "eric": "runs the ship!",
}

NEW_COMMAND_RESPONSES: list[str] = [
    (
        "Hey, welcome to Whop! Super excited to have you here. If you're just getting "
        "started, this guide breaks down exactly how people are making $1,000+/month: "
        "https://whop.com/whop/whop-course-mgE1ffKiZasYiF/app/"
    ),
    (
        "Yo, welcome to Whop! It’s awesome to have you. If you're new here, this guide "
        "walks through how people are getting started and making $1K+ a month: "
        "https://whop.com/whop/whop-course-mgE1ffKiZasYiF/app/"
    ),
    (
        "Hi! Glad to have you on Whop! Here’s a sick guide that breaks down how creators "
        "are hitting $1K+ monthly, it’s the best place to start: "
        "https://whop.com/whop/whop-course-mgE1ffKiZasYiF/app/"
    ),
]


def _canned(name: str, response: str) -> CommandDefinition:
    async def execute(args: Any, ctx: CommandContext) -> CommandResult:
        await ctx.reply(response)
        return CommandResult(success=True, message=f"Sent /{name} response.", message_sent=True)

    return CommandDefinition(
        name=name,
        parse=no_args,
        execute=execute,
        usage=f"/{name}",
    )


async def execute_new(args: Any, ctx: CommandContext) -> CommandResult:
    await ctx.reply(random.choice(NEW_COMMAND_RESPONSES))
    return CommandResult(success=True, message="Sent random /new response.", message_sent=True)


def static_commands() -> list[CommandDefinition]:
    definitions = [_canned(name, text) for name, text in STATIC_RESPONSES.items()]
    definitions.append(CommandDefinition(
        name="new",
        parse=no_args,
        execute=execute_new,
        usage="/new",
        description="Random onboarding message",
    ))
    return definitions
