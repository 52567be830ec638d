"""
Command registry for whopbot.

Holds the static command table:
- Parser, executor and optional failure hook per command
- Admin-only flag and usage string
- Case-insensitive lookup, frozen after construction
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable

if TYPE_CHECKING:
    from whopbot.app import BotServices

COMMAND_PREFIX = "/"

SendMessageFn = Callable[[str, str, str], Awaitable[Any]]


@dataclass
class CommandResult:
    """Outcome of one command invocation."""
    success: bool
    message: str
    data: Any = None
    message_sent: bool = False  # A reply already went to the feed
    skip_webhook: bool = False  # Expected failure, do not notify


@dataclass
class CommandContext:
    """What an executor knows about the invocation."""
    user_id: str
    feed_id: str
    feed_type: str
    is_admin: bool  # Includes admin-whitelist privilege
    send_message: SendMessageFn
    services: "BotServices | None" = None

    async def reply(self, message: str) -> None:
        """Send a message back to the invoking feed."""
        await self.send_message(self.feed_id, message, self.feed_type)


Parser = Callable[[str, list[str]], Any]
Executor = Callable[[Any, CommandContext], Awaitable[CommandResult]]
FailureHook = Callable[[CommandResult, CommandContext, Any], Awaitable[None]]


@dataclass(frozen=True)
class CommandDefinition:
    name: str
    parse: Parser
    execute: Executor
    admin_only: bool = False
    usage: str = ""
    description: str = ""
    on_failure: FailureHook | None = None


def no_args(raw: str, mentioned_user_ids: list[str]) -> dict[str, Any]:
    """Parser for commands without arguments."""
    return {}


def command_name(raw: str) -> str | None:
    """
    Extract the lower-cased command name from a raw message.

    Returns:
        None if the message does not start with the command prefix.
    """
    if not raw.startswith(COMMAND_PREFIX):
        return None
    parts = re.split(r"\s+", raw[len(COMMAND_PREFIX):], maxsplit=1)
    return parts[0].lower()


class CommandRegistry:
    """
    Immutable mapping of command names to definitions.

    Built once at startup; lookups are case-insensitive.
    """

    def __init__(self, definitions: Iterable[CommandDefinition]):
        commands: dict[str, CommandDefinition] = {}
        for definition in definitions:
            key = definition.name.lower()
            if key in commands:
                raise ValueError(f"Duplicate command: {key}")
            commands[key] = definition
        self._commands = MappingProxyType(commands)

    def get(self, name: str) -> CommandDefinition | None:
        return self._commands.get(name.lower())

    def names(self) -> list[str]:
        return list(self._commands)

    def definitions(self) -> list[CommandDefinition]:
        return list(self._commands.values())

    @property
    def commands(self) -> MappingProxyType:
        return self._commands

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._commands

    def __len__(self) -> int:
        return len(self._commands)
