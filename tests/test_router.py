"""
Tests for the event router.

Tests:
- Duplicate frames are processed once
- Cooldown gating and notice throttling
- Unknown commands and plain chat are ignored
- Livestream greetings
- Observer events
"""

import pytest

from whopbot.commands.builtin.static import STATIC_RESPONSES
from whopbot.events.models import ChatPostEvent, RouterEventType

from tests.conftest import FEED_ID, MEMBER_ID


def post_frame(entity_id, content, user_id=MEMBER_ID, admin=False, mentioned=None):
    return {
        "feedEntity": {
            "dmsPost": {
                "entityId": entity_id,
                "feedId": FEED_ID,
                "userId": user_id,
                "content": content,
                "feedType": "chat_feed",
                "isPosterAdmin": admin,
                "createdAt": "1700000000000",
                "user": {"username": user_id},
                "mentionedUserIds": mentioned or [],
            }
        }
    }


def live_frame(entity_id, host_id="user_host"):
    return {
        "feedEntity": {
            "livestreamFeed": {
                "entityId": entity_id,
                "hostId": host_id,
                "experienceId": "exp_1",
                "title": "Friday stream",
                "startedAt": "1700000000000",
            }
        }
    }


class TestCommandRouting:
    @pytest.mark.asyncio
    async def test_duplicate_frame_processed_once(self, bot, platform):
        frame = post_frame("post_1", "/zap")

        await bot.router.handle_raw(frame)
        await bot.router.handle_raw(frame)

        assert platform.messages_to(FEED_ID) == [STATIC_RESPONSES["zap"]]

    @pytest.mark.asyncio
    async def test_json_string_frame(self, bot, platform):
        import json

        await bot.router.handle_raw(json.dumps(post_frame("post_1", "/zap")))
        assert platform.messages_to(FEED_ID) == [STATIC_RESPONSES["zap"]]

    @pytest.mark.asyncio
    async def test_garbage_frame_dropped(self, bot, platform):
        await bot.router.handle_raw("not json")
        await bot.router.handle_raw({"feedEntity": {"dmsPost": {"content": "/zap"}}})
        assert platform.sent == []

    @pytest.mark.asyncio
    async def test_plain_chat_and_unknown_commands_ignored(self, bot, platform):
        await bot.router.handle_raw(post_frame("post_1", "hello everyone"))
        await bot.router.handle_raw(post_frame("post_2", "/definitelynotacommand"))
        assert platform.sent == []

    @pytest.mark.asyncio
    async def test_mentions_reach_the_dispatcher(self, bot, platform):
        frame = post_frame("post_1", "/kick @bob", user_id="user_admin", admin=True,
                           mentioned=["user_bob"])
        await bot.router.handle_raw(frame)
        assert "user_bob" in platform.kicked


class TestCooldown:
    @pytest.mark.asyncio
    async def test_second_command_gets_notice(self, bot, platform):
        await bot.router.handle_raw(post_frame("post_1", "/zap"))
        await bot.router.handle_raw(post_frame("post_2", "/zap"))

        assert platform.messages_to(FEED_ID) == [
            STATIC_RESPONSES["zap"],
            "Please wait 10 seconds before sending another command.",
        ]

    @pytest.mark.asyncio
    async def test_notice_sent_once_per_window(self, bot, platform, timers):
        await bot.router.handle_raw(post_frame("post_1", "/zap"))
        await bot.router.handle_raw(post_frame("post_2", "/zap"))
        await timers.advance(2)
        await bot.router.handle_raw(post_frame("post_3", "/zap"))

        notices = [m for m in platform.messages_to(FEED_ID) if m.startswith("Please wait")]
        assert len(notices) == 1

    @pytest.mark.asyncio
    async def test_command_allowed_after_cooldown(self, bot, platform, timers):
        await bot.router.handle_raw(post_frame("post_1", "/zap"))
        await timers.advance(11)
        await bot.router.handle_raw(post_frame("post_2", "/zap"))

        assert platform.messages_to(FEED_ID) == [STATIC_RESPONSES["zap"]] * 2

    @pytest.mark.asyncio
    async def test_admins_are_not_rate_limited(self, bot, platform):
        for i in range(3):
            await bot.router.handle_raw(post_frame(f"post_{i}", "/zap", user_id="user_admin",
                                                   admin=True))
        assert platform.messages_to(FEED_ID) == [STATIC_RESPONSES["zap"]] * 3

    @pytest.mark.asyncio
    async def test_cooldown_whitelist_bypasses(self, bot, platform, services):
        services.cooldown_whitelist.add(MEMBER_ID)

        await bot.router.handle_raw(post_frame("post_1", "/zap"))
        await bot.router.handle_raw(post_frame("post_2", "/zap"))

        assert platform.messages_to(FEED_ID) == [STATIC_RESPONSES["zap"]] * 2

    @pytest.mark.asyncio
    async def test_failed_notice_is_retried_next_time(self, bot, platform):
        await bot.router.handle_raw(post_frame("post_1", "/zap"))
        platform.fail_feeds.add(FEED_ID)
        await bot.router.handle_raw(post_frame("post_2", "/zap"))
        platform.fail_feeds.clear()
        await bot.router.handle_raw(post_frame("post_3", "/zap"))

        assert platform.messages_to(FEED_ID)[-1].startswith("Please wait")


class TestLivestream:
    @pytest.mark.asyncio
    async def test_default_greeting_sent_once(self, bot, platform):
        await bot.router.handle_raw(live_frame("live_1"))
        await bot.router.handle_raw(live_frame("live_1"))

        assert len(platform.messages_to("live_1")) == 1
        assert platform.sent[0].feed_type == "livestream_feed"

    @pytest.mark.asyncio
    async def test_custom_greeting(self, bot, platform, services):
        services.livestream.set_live_message("user_host", "We're live!")

        await bot.router.handle_raw(live_frame("live_2"))

        assert platform.messages_to("live_2") == ["We're live!"]


class TestObservers:
    @pytest.mark.asyncio
    async def test_events_emitted_in_order(self, bot):
        seen = []

        def record(name):
            async def observer(payload):
                seen.append((name, payload))
            return observer

        for event_type in (
            RouterEventType.MESSAGE_RECEIVED,
            RouterEventType.COMMAND_RECEIVED,
            RouterEventType.COMMAND_PROCESSED,
        ):
            bot.router.on(event_type, record(event_type.value))

        await bot.router.handle_raw(post_frame("post_1", "/zap"))

        assert [name for name, _ in seen] == [
            "message:received",
            "command:received",
            "command:processed",
        ]
        assert isinstance(seen[0][1], ChatPostEvent)
        assert seen[2][1]["result"].success

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_stop_routing(self, bot, platform):
        async def broken(payload):
            raise RuntimeError("observer bug")

        bot.router.on(RouterEventType.MESSAGE_RECEIVED, broken)
        await bot.router.handle_raw(post_frame("post_1", "/zap"))

        assert platform.messages_to(FEED_ID) == [STATIC_RESPONSES["zap"]]

    @pytest.mark.asyncio
    async def test_off_unsubscribes(self, bot):
        calls = []

        async def observer(payload):
            calls.append(payload)

        bot.router.on(RouterEventType.LIVESTREAM_STARTED, observer)
        bot.router.off(RouterEventType.LIVESTREAM_STARTED, observer)
        await bot.router.handle_raw(live_frame("live_3"))

        assert calls == []
