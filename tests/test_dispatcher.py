"""
Tests for the command registry and dispatcher.

Tests:
- Registry lookup and duplicate detection
- Permission checks before parsing
- Parse and execution error handling
- Failure hook rules
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from whopbot.commands.dispatch import (
    PREFIX_MESSAGE,
    RESTRICTED_MESSAGE,
    UNKNOWN_COMMAND_MESSAGE,
    CommandDispatcher,
)
from whopbot.commands.registry import (
    CommandDefinition,
    CommandRegistry,
    CommandResult,
    command_name,
    no_args,
)
from whopbot.errors import UsageError
from whopbot.moderation.whitelist import WhitelistRegistry

FEED = "feed_1"


def ok_executor(message="done", **kwargs):
    return AsyncMock(return_value=CommandResult(success=True, message=message, **kwargs))


@pytest.fixture
def send():
    return AsyncMock()


def make_dispatcher(send, *definitions, admins=()):
    return CommandDispatcher(
        CommandRegistry(definitions),
        WhitelistRegistry("admin", list(admins)),
        send,
    )


class TestRegistry:
    def test_lookup_is_case_insensitive(self):
        registry = CommandRegistry([CommandDefinition("Help", no_args, ok_executor())])
        assert registry.get("HELP") is not None
        assert "help" in registry
        assert registry.names() == ["help"]

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            CommandRegistry([
                CommandDefinition("help", no_args, ok_executor()),
                CommandDefinition("HELP", no_args, ok_executor()),
            ])

    def test_command_name(self):
        assert command_name("/Poll  \"q\"") == "poll"
        assert command_name("hello") is None

    def test_builtin_registry(self):
        from whopbot.commands import build_registry

        registry = build_registry()
        for name in ("help", "ban", "unban", "poll", "vote", "schedule", "tasks", "cooldown"):
            assert name in registry
        assert registry.get("ban").admin_only
        assert not registry.get("vote").admin_only
        assert not registry.get("remindme").admin_only


class TestExecuteCommand:
    @pytest.mark.asyncio
    async def test_missing_prefix(self, send):
        dispatcher = make_dispatcher(send)
        result = await dispatcher.execute_command("help", "u1", FEED, "chat_feed", False)
        assert result.message == PREFIX_MESSAGE
        send.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_command(self, send):
        dispatcher = make_dispatcher(send)
        result = await dispatcher.execute_command("/nope", "u1", FEED, "chat_feed", False)
        assert result.success is False
        assert result.message == UNKNOWN_COMMAND_MESSAGE

    @pytest.mark.asyncio
    async def test_admin_only_never_parses_without_privilege(self, send):
        parse = MagicMock(return_value={})
        execute = ok_executor()
        dispatcher = make_dispatcher(
            send, CommandDefinition("ban", parse, execute, admin_only=True)
        )

        result = await dispatcher.execute_command("/ban @x", "u1", FEED, "chat_feed", False)

        assert result.success is False
        assert result.message_sent is True
        assert result.message == "Permission denied: must be an admin to use this command"
        send.assert_awaited_once_with(FEED, RESTRICTED_MESSAGE, "chat_feed")
        parse.assert_not_called()
        execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_whitelist_grants_privilege(self, send):
        execute = ok_executor()
        dispatcher = make_dispatcher(
            send,
            CommandDefinition("ban", no_args, execute, admin_only=True),
            admins=["u1"],
        )

        result = await dispatcher.execute_command("/ban", "u1", FEED, "chat_feed", False)

        assert result.success is True
        ctx = execute.await_args.args[1]
        assert ctx.is_admin is True

    @pytest.mark.asyncio
    async def test_parse_error_replies_with_message(self, send):
        def parse(raw, mentioned):
            raise UsageError("Usage: /thing <x>")

        execute = ok_executor()
        dispatcher = make_dispatcher(send, CommandDefinition("thing", parse, execute))

        result = await dispatcher.execute_command("/thing", "u1", FEED, "chat_feed", False)

        assert result.message == "Failed to parse command arguments"
        send.assert_awaited_once_with(FEED, "Usage: /thing <x>", "chat_feed")
        execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_parse_error_without_message_falls_back_to_usage(self, send):
        def parse(raw, mentioned):
            raise ValueError()

        dispatcher = make_dispatcher(
            send, CommandDefinition("thing", parse, ok_executor(), usage="/thing <x>")
        )

        await dispatcher.execute_command("/thing", "u1", FEED, "chat_feed", False)

        send.assert_awaited_once_with(FEED, "/thing <x>", "chat_feed")

    @pytest.mark.asyncio
    async def test_mentions_are_passed_to_parser(self, send):
        parse = MagicMock(return_value={})
        dispatcher = make_dispatcher(send, CommandDefinition("kick", parse, ok_executor()))

        await dispatcher.execute_command("/kick @a", "u1", FEED, "chat_feed", True, ["user_a"])

        parse.assert_called_once_with("/kick @a", ["user_a"])


class TestFailureHooks:
    @pytest.mark.asyncio
    async def test_exception_reported_and_hook_runs(self, send):
        hook = AsyncMock()
        execute = AsyncMock(side_effect=RuntimeError("api down"))
        dispatcher = make_dispatcher(
            send, CommandDefinition("ban", no_args, execute, on_failure=hook)
        )

        result = await dispatcher.execute_command("/ban", "u1", FEED, "chat_feed", True)

        assert result.success is False
        assert result.message == "api down"
        send.assert_awaited_once_with(FEED, "Error: api down", "chat_feed")
        hook_result = hook.await_args.args[0]
        assert hook_result.message == "api down"
        assert hook_result.message_sent is True

    @pytest.mark.asyncio
    async def test_hook_runs_for_unflagged_failure(self, send):
        hook = AsyncMock()
        execute = AsyncMock(return_value=CommandResult(success=False, message="nope"))
        dispatcher = make_dispatcher(
            send, CommandDefinition("x", no_args, execute, on_failure=hook)
        )

        await dispatcher.execute_command("/x", "u1", FEED, "chat_feed", True)

        hook.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_hook_skipped_when_flagged(self, send):
        hook = AsyncMock()
        execute = AsyncMock(
            return_value=CommandResult(success=False, message="nope", skip_webhook=True)
        )
        dispatcher = make_dispatcher(
            send, CommandDefinition("x", no_args, execute, on_failure=hook)
        )

        await dispatcher.execute_command("/x", "u1", FEED, "chat_feed", True)

        hook.assert_not_called()

    @pytest.mark.asyncio
    async def test_hook_not_run_on_success(self, send):
        hook = AsyncMock()
        dispatcher = make_dispatcher(
            send, CommandDefinition("x", no_args, ok_executor(), on_failure=hook)
        )

        await dispatcher.execute_command("/x", "u1", FEED, "chat_feed", True)

        hook.assert_not_called()

    @pytest.mark.asyncio
    async def test_hook_errors_are_contained(self, send):
        hook = AsyncMock(side_effect=RuntimeError("hook bug"))
        execute = AsyncMock(return_value=CommandResult(success=False, message="nope"))
        dispatcher = make_dispatcher(
            send, CommandDefinition("x", no_args, execute, on_failure=hook)
        )

        result = await dispatcher.execute_command("/x", "u1", FEED, "chat_feed", True)

        assert result.message == "nope"
