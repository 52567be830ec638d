"""
End-to-end tests through the composed bot.

Raw websocket frames go in through the router; everything external is a fake.
"""

import pytest

from whopbot.app import WhopBot, build_services
from whopbot.config.schema import Config, ScheduledAnnouncement
from whopbot.commands.dispatch import RESTRICTED_MESSAGE

from tests.conftest import ADMIN_ID, FEED_ID, MEMBER_ID


def post_frame(entity_id, content, user_id, admin=False, mentioned=None):
    return {
        "feedEntity": {
            "dmsPost": {
                "entityId": entity_id,
                "feedId": FEED_ID,
                "userId": user_id,
                "content": content,
                "feedType": "chat_feed",
                "isPosterAdmin": admin,
                "user": {"username": user_id},
                "mentionedUserIds": mentioned or [],
            }
        }
    }


class TestScenarios:
    @pytest.mark.asyncio
    async def test_poll_tie_announced(self, bot, services, platform, timers):
        await bot.router.handle_raw(
            post_frame("p1", '/poll "Best color?" "Red" "Blue" 1', ADMIN_ID, admin=True)
        )
        (poll,) = services.polls.get_active_polls()
        assert [o.text for o in poll.options] == ["Red", "Blue"]
        assert (poll.expires_at - poll.created_at).total_seconds() == 60

        await bot.router.handle_raw(post_frame("p2", f"/vote {poll.id} 1", "user_one"))
        await bot.router.handle_raw(post_frame("p3", f"/vote {poll.id} 2", "user_two"))
        await timers.advance(60)

        results = platform.messages_to(FEED_ID)[-1]
        assert "Tie between: Red, Blue" in results
        assert not services.polls.get_active_polls()

    @pytest.mark.asyncio
    async def test_schedule_limit(self, run_command, services, platform):
        for i in range(10):
            services.schedules.schedule(FEED_ID, "chat_feed", ADMIN_ID, f"msg {i}", 1, "h")

        result = await run_command('/schedule "hi" every 1m')

        assert not result.success
        assert "Maximum 10 schedules" in platform.messages_to(FEED_ID)[-1]
        assert len(services.schedules.list_for_feed(FEED_ID)) == 10

    @pytest.mark.asyncio
    async def test_member_cannot_ban(self, run_command, platform, sink):
        result = await run_command("/ban @x", user_id=MEMBER_ID, is_admin=False,
                                   mentioned=["user_x"])

        assert not result.success
        assert result.message_sent
        assert platform.messages_to(FEED_ID) == [RESTRICTED_MESSAGE]
        assert platform.banned == set()
        assert sink.sent == []

    @pytest.mark.asyncio
    async def test_duplicate_post_executes_once(self, bot, platform):
        frame = post_frame("p1", "/kick @bob", ADMIN_ID, admin=True, mentioned=["user_bob"])
        executed = []

        async def count(payload):
            executed.append(payload)

        from whopbot.events.models import RouterEventType
        bot.router.on(RouterEventType.COMMAND_PROCESSED, count)

        await bot.router.handle_raw(frame)
        await bot.router.handle_raw(frame)

        assert len(executed) == 1
        assert platform.kicked == {"user_bob"}


@pytest.fixture
def announcing_bot(platform, sink, timers):
    config = Config(
        _env_file=None,
        api_key="test-key",
        agent_user_id="user_agent",
        scheduled_announcements=[
            ScheduledAnnouncement(
                name="Every Minute!", cron="* * * * *", feed_id="feed_news", message="tick"
            ),
            ScheduledAnnouncement(
                name="Off", cron="0 9 * * *", feed_id="feed_news", message="off", enabled=False
            ),
        ],
    )
    services = build_services(config, platform=platform, notifications=sink, timers=timers)
    return WhopBot(config, services=services)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_scheduled_announcements(self, announcing_bot, platform, timers):
        assert announcing_bot.install_scheduled_announcements() == 1

        task = announcing_bot.services.cron.get_task("announcement-every-minute")
        assert task is not None
        assert task.payload == {"feed_id": "feed_news", "feed_type": "chat_feed"}

        await timers.advance(61)
        assert platform.messages_to("feed_news") == ["tick"]

    @pytest.mark.asyncio
    async def test_shutdown_cancels_timers(self, bot, services, timers, run_command):
        await run_command('/schedule "hello" every 5m')
        await run_command('/poll "Q?" "A" "B" 3')
        assert timers.active_ids()

        await bot.shutdown()

        assert timers.active_ids() == []
        assert services.schedules.total_active() == 0

    @pytest.mark.asyncio
    async def test_run_installs_and_shuts_down(self, announcing_bot, timers, monkeypatch):
        started = []

        class FakeSocket:
            def __init__(self, url, api_key, agent_user_id, router, **kwargs):
                self.router = router

            async def start(self):
                started.append(timers.active_ids())

            async def stop(self):
                started.append("stopped")

        monkeypatch.setattr("whopbot.app.WhopSocket", FakeSocket)

        await announcing_bot.run()

        assert started[0] == ["cron:announcement-every-minute"]
        assert started[1] == "stopped"
        assert timers.active_ids() == []
