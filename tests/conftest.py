"""
Pytest configuration and shared fixtures for whopbot tests.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.fakes import FakeNotificationSink, FakePlatformAPI, FakeTimerService  # noqa: E402

ADMIN_ID = "user_admin"
MEMBER_ID = "user_member"
FEED_ID = "feed_chat"


@pytest.fixture
def timers():
    return FakeTimerService()


@pytest.fixture
def platform():
    return FakePlatformAPI()


@pytest.fixture
def sink():
    return FakeNotificationSink()


@pytest.fixture
def config():
    """Config built from explicit values only."""
    from whopbot.config.schema import Config

    return Config(
        _env_file=None,
        api_key="test-key",
        agent_user_id="user_agent",
        chat_cooldown_seconds=10,
        chat_cooldown_notice_minutes=5,
        admin_whitelist="",
        cooldown_whitelist="",
        announcement_feed_id="feed_announcements",
    )


@pytest.fixture
def services(config, platform, sink, timers):
    from whopbot.app import build_services

    return build_services(config, platform=platform, notifications=sink, timers=timers)


@pytest.fixture
def bot(config, services):
    from whopbot.app import WhopBot

    return WhopBot(config, services=services)


@pytest.fixture
def run_command(bot):
    """Run a command through the dispatcher as ``user_id`` in FEED_ID."""
    async def run(raw, user_id=ADMIN_ID, is_admin=True, mentioned=None, feed_type="chat_feed"):
        return await bot.dispatcher.execute_command(
            raw, user_id, FEED_ID, feed_type, is_admin, mentioned or []
        )

    return run
