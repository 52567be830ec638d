"""Tests for configuration loading."""

import json

import pytest

from whopbot.config.loader import load_config, require_credentials
from whopbot.config.schema import Config, split_id_list


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "WHOP_API_KEY",
        "WHOP_AGENT_USER_ID",
        "WHOP_CHAT_COOLDOWN_SECONDS",
        "WHOP_ADMIN_WHITELIST",
        "WHOP_WEBHOOK_URLS",
        "LOG_WEBHOOK_URL",
        "WHOP_SCHEDULED_ANNOUNCEMENTS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config(_env_file=None)
    assert config.chat_cooldown_seconds == 10
    assert config.chat_cooldown_notice_minutes == 5
    assert config.websocket_url == "wss://ws-prod.whop.com/ws/developer"
    assert config.get_webhooks() == {}


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("WHOP_API_KEY", "key")
    monkeypatch.setenv("WHOP_CHAT_COOLDOWN_SECONDS", "30")
    monkeypatch.setenv("WHOP_ADMIN_WHITELIST", "user_a, user_b,,")

    config = Config(_env_file=None)

    assert config.api_key == "key"
    assert config.chat_cooldown_seconds == 30
    assert config.admin_whitelist_ids == ["user_a", "user_b"]


def test_webhook_overrides(monkeypatch):
    monkeypatch.setenv("WHOP_WEBHOOK_URLS", json.dumps({
        "log": "https://hooks.example/old-log",
        "poll": "https://hooks.example/poll",
    }))
    monkeypatch.setenv("LOG_WEBHOOK_URL", "https://hooks.example/log")

    webhooks = Config(_env_file=None).get_webhooks()

    assert webhooks == {
        "log": "https://hooks.example/log",
        "poll": "https://hooks.example/poll",
    }


def test_bad_webhook_json_is_empty(monkeypatch):
    monkeypatch.setenv("WHOP_WEBHOOK_URLS", "{not json")
    assert Config(_env_file=None).get_webhooks() == {}


def test_scheduled_announcements_from_env(monkeypatch):
    monkeypatch.setenv("WHOP_SCHEDULED_ANNOUNCEMENTS", json.dumps([
        {"name": "Morning", "cron": "0 9 * * *", "feed_id": "feed_1", "message": "gm"},
    ]))

    config = Config(_env_file=None)

    assert len(config.scheduled_announcements) == 1
    assert config.scheduled_announcements[0].feed_type == "chat_feed"
    assert config.scheduled_announcements[0].enabled


def test_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("WHOP_API_KEY=from-file\nWHOP_AGENT_USER_ID=user_agent\n")

    config = load_config(env_file)

    assert config.api_key == "from-file"
    require_credentials(config)


def test_require_credentials():
    with pytest.raises(ValueError, match="WHOP_API_KEY, WHOP_AGENT_USER_ID"):
        require_credentials(Config(_env_file=None))


def test_split_id_list():
    assert split_id_list("") == []
    assert split_id_list(" a ,b") == ["a", "b"]
