"""Outbound webhook notifications."""

from whopbot.hooks.notifications import (
    LogLevel,
    log_error,
    log_info,
    log_notification,
    moderation_notification,
    poll_created_notification,
    poll_results_notification,
)
from whopbot.hooks.service import (
    Embed,
    EmbedField,
    Notification,
    NotificationSink,
    WebhookService,
)

__all__ = [
    "Embed",
    "EmbedField",
    "Notification",
    "NotificationSink",
    "WebhookService",
    "LogLevel",
    "log_notification",
    "log_info",
    "log_error",
    "moderation_notification",
    "poll_created_notification",
    "poll_results_notification",
]
