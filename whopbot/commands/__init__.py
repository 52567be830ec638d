"""Chat command registry, dispatch and builtin commands."""

from whopbot.commands.builtin import build_registry, builtin_commands
from whopbot.commands.dispatch import CommandDispatcher
from whopbot.commands.registry import (
    COMMAND_PREFIX,
    CommandContext,
    CommandDefinition,
    CommandRegistry,
    CommandResult,
    command_name,
    no_args,
)

__all__ = [
    "COMMAND_PREFIX",
    "CommandContext",
    "CommandDefinition",
    "CommandDispatcher",
    "CommandRegistry",
    "CommandResult",
    "build_registry",
    "builtin_commands",
    "command_name",
    "no_args",
]
