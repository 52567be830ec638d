"""Configuration schema using Pydantic."""

import json
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


def split_id_list(value: str) -> list[str]:
    """Split a comma-separated id list, trimming blanks."""
    return [part.strip() for part in value.split(",") if part.strip()]


class ScheduledAnnouncement(BaseModel):
    """A cron-driven announcement installed at startup."""
    name: str
    cron: str  # Five-field cron expression
    feed_id: str
    message: str
    feed_type: str = "chat_feed"
    enabled: bool = True


class Config(BaseSettings):
    """Root configuration for whopbot, read from WHOP_* environment variables."""
    # Credentials
    api_key: str = ""
    agent_user_id: str = ""  # Account the bot acts on behalf of
    company_id: str = ""
    app_id: str = ""

    # Endpoints
    graphql_url: str = "https://api.whop.com/public-graphql"
    websocket_url: str = "wss://ws-prod.whop.com/ws/developer"
    max_reconnect_attempts: int = 10
    reconnect_delay_seconds: float = 5.0

    # Cooldowns
    chat_cooldown_seconds: int = 10
    chat_cooldown_notice_minutes: int = 5

    # Whitelists (comma-separated user ids)
    admin_whitelist: str = ""
    cooldown_whitelist: str = ""

    announcement_feed_id: str = ""

    # Webhooks: JSON object of channel name -> URL, plus per-channel overrides
    webhook_urls: str = "{}"
    moderation_webhook_url: str = Field(default="", validation_alias="MODERATION_WEBHOOK_URL")
    poll_webhook_url: str = Field(default="", validation_alias="POLL_WEBHOOK_URL")
    log_webhook_url: str = Field(default="", validation_alias="LOG_WEBHOOK_URL")
    content_rewards_webhook_url: str = Field(
        default="", validation_alias="CONTENT_REWARDS_WEBHOOK_URL"
    )
    webhook_timeout_seconds: float = 10.0

    scheduled_announcements: list[ScheduledAnnouncement] = Field(default_factory=list)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def admin_whitelist_ids(self) -> list[str]:
        return split_id_list(self.admin_whitelist)

    @property
    def cooldown_whitelist_ids(self) -> list[str]:
        return split_id_list(self.cooldown_whitelist)

    def get_webhooks(self) -> dict[str, str]:
        """
        Resolve named webhook URLs.

        The individual *_WEBHOOK_URL variables win over entries in WHOP_WEBHOOK_URLS.
        An unparseable WHOP_WEBHOOK_URLS value is treated as empty.
        """
        webhooks: dict[str, str] = {}
        try:
            parsed = json.loads(self.webhook_urls or "{}")
            if isinstance(parsed, dict):
                webhooks.update({str(k): str(v) for k, v in parsed.items()})
        except json.JSONDecodeError:
            pass

        overrides = {
            "moderation": self.moderation_webhook_url,
            "poll": self.poll_webhook_url,
            "log": self.log_webhook_url,
            "content_rewards": self.content_rewards_webhook_url,
        }
        for name, url in overrides.items():
            if url:
                webhooks[name] = url
        return webhooks

    class Config:
        env_prefix = "WHOP_"
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True
