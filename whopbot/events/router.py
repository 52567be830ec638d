"""
Event router.

Turns decoded websocket events into bot actions:
- Chat posts are deduplicated, cooldown-gated and dispatched as commands
- Livestream starts are greeted through the livestream handler
- Observers receive router events for logging and tests
"""

import json
from collections import defaultdict
from typing import Any, Awaitable, Callable

from loguru import logger

from whopbot.commands.dispatch import CommandDispatcher
from whopbot.commands.registry import SendMessageFn, command_name
from whopbot.events.models import (
    ChatEvent,
    ChatPostEvent,
    IgnoredEvent,
    LivestreamStartedEvent,
    RouterEventType,
    decode_event,
)
from whopbot.moderation.cooldown import CooldownManager
from whopbot.moderation.livestream import LivestreamHandler
from whopbot.moderation.whitelist import WhitelistRegistry
from whopbot.utils.dedup import RecentIdSet

Observer = Callable[[Any], Awaitable[None]]


class EventRouter:
    """Routes websocket events to the dispatcher and livestream handler."""

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        cooldowns: CooldownManager,
        cooldown_whitelist: WhitelistRegistry,
        livestream: LivestreamHandler,
        send_message: SendMessageFn,
    ):
        self.dispatcher = dispatcher
        self.cooldowns = cooldowns
        self.cooldown_whitelist = cooldown_whitelist
        self.livestream = livestream
        self._send_message = send_message
        self._seen_posts = RecentIdSet(max_size=1000, trim_to=500)
        self._seen_livestreams = RecentIdSet(max_size=1000, trim_to=500)
        self._observers: dict[str, list[Observer]] = defaultdict(list)

    def on(self, event_type: RouterEventType, observer: Observer) -> None:
        """Subscribe to a router event."""
        self._observers[event_type.value].append(observer)

    def off(self, event_type: RouterEventType, observer: Observer) -> None:
        if observer in self._observers[event_type.value]:
            self._observers[event_type.value].remove(observer)

    async def emit(self, event_type: RouterEventType, payload: Any = None) -> None:
        for observer in list(self._observers[event_type.value]):
            try:
                await observer(payload)
            except Exception as e:
                logger.warning(f"Observer for {event_type.value} failed: {e}")

    async def handle_raw(self, data: str | bytes | dict[str, Any]) -> None:
        """Decode and route one raw frame. Never raises."""
        try:
            raw = data if isinstance(data, dict) else json.loads(data)
            event = decode_event(raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"Dropping undecodable frame: {e}")
            return
        await self.route(event)

    async def route(self, event: ChatEvent) -> None:
        try:
            if isinstance(event, ChatPostEvent):
                await self._handle_post(event)
            elif isinstance(event, LivestreamStartedEvent):
                await self._handle_livestream(event)
            elif isinstance(event, IgnoredEvent):
                logger.debug(f"Ignored frame: {event.reason}")
        except Exception as e:
            logger.error(f"Error processing event: {e}")

    async def _handle_post(self, post: ChatPostEvent) -> None:
        if not self._seen_posts.add(post.id):
            logger.debug(f"Skipping already processed message: {post.id}")
            return

        await self.emit(RouterEventType.MESSAGE_RECEIVED, post)
        if not post.is_command:
            return

        name = command_name(post.content)
        if name is None or name not in self.dispatcher.registry:
            logger.debug(f"Ignored unknown command: {post.content}")
            return

        await self.emit(RouterEventType.COMMAND_RECEIVED, post)

        privileged = post.is_poster_admin or self.cooldown_whitelist.is_member(post.user_id)
        check = self.cooldowns.check_cooldown(post.user_id, privileged)
        if check.on_cooldown:
            await self._send_cooldown_notice(post, check.formatted)
            return

        self.cooldowns.record_message(post.user_id)
        result = await self.dispatcher.execute_command(
            post.content,
            post.user_id,
            post.feed_id,
            post.feed_type,
            post.is_poster_admin,
            post.mentioned_user_ids,
        )
        logger.info(f"Command /{name} from {post.user_id}: {result.message}")
        await self.emit(RouterEventType.COMMAND_PROCESSED, {"message": post, "result": result})

    async def _send_cooldown_notice(self, post: ChatPostEvent, formatted: str) -> None:
        if not self.cooldowns.should_send_notice(post.user_id):
            logger.debug(f"Cooldown notice for {post.user_id} suppressed")
            return
        try:
            await self._send_message(
                post.feed_id,
                f"Please wait {formatted} before sending another command.",
                post.feed_type,
            )
            self.cooldowns.record_notice(post.user_id)
        except Exception as e:
            logger.warning(f"Error sending cooldown notice: {e}")

    async def _handle_livestream(self, event: LivestreamStartedEvent) -> None:
        if not self._seen_livestreams.add(event.feed_id):
            logger.debug(f"Skipping already processed livestream: {event.feed_id}")
            return

        logger.info(f"Detected livestream start: {event.feed_id} by host {event.host_id}")
        await self.emit(RouterEventType.LIVESTREAM_STARTED, event)
        await self.livestream.handle_user_live(event.host_id, event.feed_id, event.experience_id)
