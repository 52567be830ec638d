"""
Webhook notification service for whopbot.

Posts Discord-style embed payloads to named channels:
- moderation
- poll
- log
- content_rewards
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx
from loguru import logger

from whopbot.errors import WebhookError

DEFAULT_EMBED_COLOR = 0xFA4616


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass
class Embed:
    """A rich embed: title, description, color, fields and footer."""
    title: str = ""
    description: str = ""
    color: int = DEFAULT_EMBED_COLOR
    url: str = ""
    fields: list[EmbedField] = field(default_factory=list)
    footer: str = ""
    footer_icon_url: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "color": self.color,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.title:
            data["title"] = self.title
        if self.description:
            data["description"] = self.description
        if self.url:
            data["url"] = self.url
        if self.fields:
            data["fields"] = [
                {"name": f.name, "value": f.value, "inline": f.inline}
                for f in self.fields
            ]
        if self.footer:
            footer = {"text": self.footer}
            if self.footer_icon_url:
                footer["icon_url"] = self.footer_icon_url
            data["footer"] = footer
        return data


@dataclass
class Notification:
    """A message for one named webhook channel."""
    channel: str
    embeds: list[Embed] = field(default_factory=list)
    content: str = ""

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.content:
            payload["content"] = self.content
        if self.embeds:
            payload["embeds"] = [e.to_dict() for e in self.embeds]
        return payload


class NotificationSink(Protocol):
    """Capability to deliver notifications to named channels."""

    async def send(self, notification: Notification) -> Any: ...

    async def notify(self, notification: Notification) -> bool: ...


class WebhookService:
    """
    Delivers notifications to webhook URLs over HTTP.

    Features:
    - Channel name to URL mapping, mutable at runtime
    - ``send`` raises WebhookError on any failure
    - ``notify`` is best-effort: logs failures and returns False
    """

    def __init__(
        self,
        webhooks: dict[str, str] | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._webhooks: dict[str, str] = dict(webhooks or {})
        self._client = client or httpx.AsyncClient(timeout=timeout)

        logger.info(f"WebhookService initialized with channels: {sorted(self._webhooks)}")

    def set_webhook_url(self, channel: str, url: str) -> None:
        self._webhooks[channel] = url

    def get_webhook_url(self, channel: str) -> str | None:
        return self._webhooks.get(channel)

    @property
    def channels(self) -> list[str]:
        return sorted(self._webhooks)

    async def send(self, notification: Notification) -> Any:
        """
        Post a notification.

        Returns:
            The decoded JSON response, or ``{"success": True}`` for empty or
            non-JSON responses.

        Raises:
            WebhookError: If the channel is unknown or delivery fails.
        """
        url = self._webhooks.get(notification.channel)
        if not url:
            raise WebhookError(f"Webhook URL not found for name: {notification.channel}")

        payload = notification.to_payload()
        logger.debug(f"Sending webhook to {notification.channel}")

        try:
            response = await self._client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise WebhookError(
                f"Webhook request failed: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise WebhookError(f"Webhook request failed: {e}") from e

        content_type = response.headers.get("content-type", "")
        if not response.content or "application/json" not in content_type:
            return {"success": True}
        try:
            return response.json()
        except ValueError:
            return {"success": True}

    async def notify(self, notification: Notification) -> bool:
        """Send without raising. Returns whether delivery succeeded."""
        try:
            await self.send(notification)
            return True
        except WebhookError as e:
            logger.warning(f"Error sending webhook to {notification.channel}: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
