"""
Composition root.

Builds every service once and hands the bundle to the command handlers,
the event router and the websocket channel.
"""

import asyncio
import re
from dataclasses import dataclass

from loguru import logger

from whopbot.channels.whop import WhopSocket
from whopbot.commands import CommandDispatcher, build_registry
from whopbot.commands.registry import CommandRegistry
from whopbot.config.schema import Config, ScheduledAnnouncement
from whopbot.events.router import EventRouter
from whopbot.hooks.service import NotificationSink, WebhookService
from whopbot.moderation.cooldown import CooldownManager
from whopbot.moderation.livestream import LivestreamHandler
from whopbot.moderation.whitelist import WhitelistRegistry
from whopbot.platform.api import PlatformAPI
from whopbot.platform.graphql import WhopGraphQLClient
from whopbot.polls.engine import PollEngine
from whopbot.scheduler.cron import CronScheduler, CronTask
from whopbot.scheduler.recurring import RecurringMessageScheduler
from whopbot.scheduler.timers import Timers, TimerService
from whopbot.utils.retry import RetryPolicy


@dataclass
class BotServices:
    """Everything a command handler may touch."""
    config: Config
    platform: PlatformAPI
    notifications: NotificationSink
    timers: Timers
    cooldowns: CooldownManager
    cooldown_whitelist: WhitelistRegistry
    admin_whitelist: WhitelistRegistry
    polls: PollEngine
    schedules: RecurringMessageScheduler
    cron: CronScheduler
    livestream: LivestreamHandler
    retry_policy: RetryPolicy = RetryPolicy()


def build_services(
    config: Config,
    platform: PlatformAPI | None = None,
    notifications: NotificationSink | None = None,
    timers: Timers | None = None,
) -> BotServices:
    """
    Wire the default services from configuration.

    Any of ``platform``, ``notifications`` or ``timers`` may be supplied to
    replace the production implementation.
    """
    if platform is None:
        platform = WhopGraphQLClient(
            api_key=config.api_key,
            agent_user_id=config.agent_user_id,
            company_id=config.company_id,
            app_id=config.app_id,
            url=config.graphql_url,
        )
    if notifications is None:
        notifications = WebhookService(
            config.get_webhooks(), timeout=config.webhook_timeout_seconds
        )
    if timers is None:
        timers = TimerService()

    send = platform.send_message
    return BotServices(
        config=config,
        platform=platform,
        notifications=notifications,
        timers=timers,
        cooldowns=CooldownManager(
            cooldown_seconds=config.chat_cooldown_seconds,
            notice_minutes=config.chat_cooldown_notice_minutes,
            clock=timers.now,
        ),
        cooldown_whitelist=WhitelistRegistry("cooldown", config.cooldown_whitelist_ids),
        admin_whitelist=WhitelistRegistry("admin", config.admin_whitelist_ids),
        polls=PollEngine(timers, send, notifications),
        schedules=RecurringMessageScheduler(timers, send),
        cron=CronScheduler(timers),
        livestream=LivestreamHandler(send),
    )


def _task_id(name: str) -> str:
    return "announcement-" + re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class WhopBot:
    """
    The running bot: registry, dispatcher, router and websocket.

    ``services`` is built from ``config`` unless supplied.
    """

    def __init__(
        self,
        config: Config,
        services: BotServices | None = None,
        registry: CommandRegistry | None = None,
    ):
        self.config = config
        self.services = services or build_services(config)
        self.registry = registry or build_registry()

        send = self.services.platform.send_message
        self.dispatcher = CommandDispatcher(
            self.registry,
            self.services.admin_whitelist,
            send,
            services=self.services,
        )
        self.router = EventRouter(
            self.dispatcher,
            self.services.cooldowns,
            self.services.cooldown_whitelist,
            self.services.livestream,
            send,
        )
        self.socket: WhopSocket | None = None

    def install_scheduled_announcements(self) -> int:
        """Install enabled announcements from config. Returns how many were installed."""
        installed = 0
        for announcement in self.config.scheduled_announcements:
            if not announcement.enabled:
                continue
            task = CronTask(
                id=_task_id(announcement.name),
                name=announcement.name,
                expression=announcement.cron,
                payload={"feed_id": announcement.feed_id, "feed_type": announcement.feed_type},
            )
            self.services.cron.schedule_task(task, self._announcement_callback(announcement))
            installed += 1
        return installed

    def _announcement_callback(self, announcement: ScheduledAnnouncement):
        platform = self.services.platform

        async def send(task: CronTask) -> None:
            await platform.send_message(
                announcement.feed_id, announcement.message, announcement.feed_type
            )

        return send

    async def run(self) -> None:
        """Connect and serve until the socket gives up or the task is cancelled."""
        installed = self.install_scheduled_announcements()
        if installed:
            logger.info(f"Installed {installed} scheduled announcements")

        self.socket = WhopSocket(
            self.config.websocket_url,
            self.config.api_key,
            self.config.agent_user_id,
            self.router,
            max_reconnect_attempts=self.config.max_reconnect_attempts,
            reconnect_delay=self.config.reconnect_delay_seconds,
        )
        try:
            await self.socket.start()
        except asyncio.CancelledError:
            logger.info("Shutting down...")
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop the socket and every timer, then close HTTP clients."""
        if self.socket is not None:
            await self.socket.stop()

        services = self.services
        services.schedules.stop_all()
        services.cron.stop_all()
        services.timers.shutdown()

        for client in (services.platform, services.notifications):
            close = getattr(client, "close", None)
            if close is not None:
                await close()
        logger.info("whopbot stopped")
