"""Livestream welcome messages."""

from typing import Any, Awaitable, Callable

from loguru import logger

from whopbot.utils.dedup import RecentIdSet

DEFAULT_LIVE_MESSAGE = "📢 Welcome to the stream! Thanks for joining us!"

SendMessage = Callable[[str, str, str], Awaitable[Any]]


class LivestreamHandler:
    """
    Greets a livestream once when it starts.

    Hosts can set a custom greeting with /newlive; otherwise the default
    message is sent.
    """

    def __init__(self, send_message: SendMessage, default_message: str = DEFAULT_LIVE_MESSAGE):
        self._send_message = send_message
        self.default_message = default_message
        self._live_messages: dict[str, str] = {}
        self._processed = RecentIdSet(max_size=1000, trim_to=500)

    def set_live_message(self, user_id: str, message: str) -> None:
        self._live_messages[user_id] = message
        logger.info(f"Set live message for user {user_id}")

    def get_live_message(self, user_id: str) -> str | None:
        return self._live_messages.get(user_id)

    def reset_live_message(self, user_id: str) -> bool:
        if self._live_messages.pop(user_id, None) is None:
            return False
        logger.info(f"Reset live message for user {user_id}")
        return True

    async def handle_user_live(self, host_id: str, feed_id: str, experience_id: str = "") -> bool:
        """
        Send the host's greeting to a livestream feed.

        Args:
            host_id: The streaming user.
            feed_id: Livestream feed id; each feed is greeted at most once.
            experience_id: Experience the stream belongs to.

        Returns:
            True if a greeting was sent.
        """
        if not self._processed.add(feed_id):
            logger.debug(f"Livestream {feed_id} already processed")
            return False

        message = self.get_live_message(host_id) or self.default_message
        try:
            await self._send_message(feed_id, message, "livestream_feed")
        except Exception as e:
            logger.error(f"Error sending live message to {feed_id}: {e}")
            return False

        logger.info(f"Sent live message to feed {feed_id} for user {host_id} ({experience_id})")
        return True
