"""
Command dispatch.

Runs one raw command through
received -> permission-checked -> parsed -> executed -> failure hook,
with each stage containing its own errors.
"""

from typing import TYPE_CHECKING

from loguru import logger

from whopbot.commands.registry import (
    CommandContext,
    CommandDefinition,
    CommandRegistry,
    CommandResult,
    SendMessageFn,
    command_name,
)
from whopbot.moderation.whitelist import WhitelistRegistry

if TYPE_CHECKING:
    from whopbot.app import BotServices

RESTRICTED_MESSAGE = "This command is restricted to administrators only."
UNKNOWN_COMMAND_MESSAGE = "Unknown command. Type /help for available commands."
PREFIX_MESSAGE = "Commands must start with `/`."


class CommandDispatcher:
    """
    Resolves, authorizes, parses and executes commands.

    Features:
    - Privilege is platform admin OR admin-whitelist membership
    - Admin-only commands never reach their parser without privilege
    - Failure hooks run for thrown errors and unflagged failed results
    """

    def __init__(
        self,
        registry: CommandRegistry,
        admin_whitelist: WhitelistRegistry,
        send_message: SendMessageFn,
        services: "BotServices | None" = None,
    ):
        self.registry = registry
        self.admin_whitelist = admin_whitelist
        self._send_message = send_message
        self.services = services

    def resolve(self, raw: str) -> CommandDefinition | None:
        name = command_name(raw)
        return self.registry.get(name) if name else None

    def has_privilege(self, user_id: str, is_admin: bool) -> bool:
        return is_admin or self.admin_whitelist.is_member(user_id)

    async def execute_command(
        self,
        raw: str,
        user_id: str,
        feed_id: str,
        feed_type: str,
        is_admin: bool,
        mentioned_user_ids: list[str] | None = None,
    ) -> CommandResult:
        """
        Execute a raw command message.

        Args:
            raw: Message text, starting with the command prefix.
            user_id: Invoking user.
            feed_id: Feed the command was sent in.
            feed_type: Type tag of that feed.
            is_admin: Whether the platform marks the poster as admin.
            mentioned_user_ids: Users mentioned in the message, in order.

        Returns:
            The command result. Every failure after command resolution has
            already been reported to the feed.
        """
        name = command_name(raw)
        if name is None:
            return CommandResult(success=False, message=PREFIX_MESSAGE)

        definition = self.registry.get(name)
        if definition is None:
            return CommandResult(success=False, message=UNKNOWN_COMMAND_MESSAGE)

        privileged = self.has_privilege(user_id, is_admin)
        if definition.admin_only and not privileged:
            await self._send_message(feed_id, RESTRICTED_MESSAGE, feed_type)
            return CommandResult(
                success=False,
                message="Permission denied: must be an admin to use this command",
                message_sent=True,
            )

        try:
            args = definition.parse(raw, list(mentioned_user_ids or []))
        except Exception as e:
            await self._send_message(
                feed_id, str(e) or definition.usage or "Usage error", feed_type
            )
            return CommandResult(
                success=False,
                message="Failed to parse command arguments",
                message_sent=True,
            )

        ctx = CommandContext(
            user_id=user_id,
            feed_id=feed_id,
            feed_type=feed_type,
            is_admin=privileged,
            send_message=self._send_message,
            services=self.services,
        )

        try:
            result = await definition.execute(args, ctx)
        except Exception as e:
            error = str(e) or "An unexpected error occurred"
            logger.error(f"Error executing command {name}: {error}")
            await self._send_message(feed_id, f"Error: {error}", feed_type)

            await self._run_failure_hook(
                definition,
                CommandResult(success=False, message=error, message_sent=True),
                ctx,
                args,
            )
            return CommandResult(success=False, message=error, message_sent=True)

        if not result.success and not result.skip_webhook:
            await self._run_failure_hook(definition, result, ctx, args)

        return result

    async def _run_failure_hook(
        self,
        definition: CommandDefinition,
        result: CommandResult,
        ctx: CommandContext,
        args: object,
    ) -> None:
        if definition.on_failure is None:
            return
        try:
            await definition.on_failure(result, ctx, args)
        except Exception as e:
            logger.error(f"Error in failure hook for command {definition.name}: {e}")
