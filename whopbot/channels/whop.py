"""
Whop websocket channel.

Connects to the developer websocket on behalf of the agent user and feeds
every text frame to the event router. Dropped connections are retried with
exponential backoff until the attempt limit is reached.
"""

import asyncio

import aiohttp
from loguru import logger

from whopbot.events.models import RouterEventType
from whopbot.events.router import EventRouter


class WhopSocket:
    """
    Event source for the Whop chat websocket.

    Features:
    - Bearer auth plus x-on-behalf-of for the agent user
    - Connection lifecycle reported to router observers
    - Reconnect with exponential backoff, capped delay and attempt count
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        agent_user_id: str,
        router: EventRouter,
        max_reconnect_attempts: int = 10,
        reconnect_delay: float = 5.0,
        max_reconnect_delay: float = 300.0,
    ):
        if not api_key or not agent_user_id:
            raise ValueError("Missing WHOP_API_KEY or WHOP_AGENT_USER_ID")

        self.url = url
        self.router = router
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "x-on-behalf-of": agent_user_id,
        }

        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._running = False

        self.max_reconnect_attempts = max_reconnect_attempts
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._reconnect_attempts = 0

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def start(self) -> None:
        """Connect and serve until stopped or out of reconnect attempts."""
        if self._running:
            return
        self._running = True
        logger.info(f"Connecting to Whop websocket: {self.url}")

        while self._running:
            try:
                await self._connect()
                await self._run_loop()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"WebSocket error: {e}")
                await self.router.emit(RouterEventType.CONNECTION_ERROR, e)

            await self._close_ws()
            if not self._running:
                break

            if self._reconnect_attempts >= self.max_reconnect_attempts:
                logger.error("Max reconnect attempts reached")
                break

            delay = min(
                self._reconnect_delay * (2 ** self._reconnect_attempts),
                self._max_reconnect_delay,
            )
            self._reconnect_attempts += 1
            logger.info(
                f"Attempting to reconnect ({self._reconnect_attempts}/"
                f"{self.max_reconnect_attempts}) in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

        self._running = False
        await self._disconnect()
        logger.info("Whop websocket stopped")

    async def stop(self) -> None:
        self._running = False
        await self._disconnect()

    async def _connect(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(headers=self._headers)

        self._ws = await self._session.ws_connect(self.url, heartbeat=30.0)
        self._reconnect_attempts = 0
        logger.info("WebSocket connection established")
        await self.router.emit(RouterEventType.CONNECTION_OPENED)

    async def _run_loop(self) -> None:
        if not self._ws:
            return

        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                await self.router.handle_raw(msg.data)

            elif msg.type == aiohttp.WSMsgType.CLOSED:
                break

            elif msg.type == aiohttp.WSMsgType.ERROR:
                error = self._ws.exception()
                logger.error(f"WebSocket error: {error}")
                await self.router.emit(RouterEventType.CONNECTION_ERROR, error)
                break

        code = self._ws.close_code
        logger.info(f"WebSocket connection closed: {code}")
        await self.router.emit(RouterEventType.CONNECTION_CLOSED, {"code": code})

    async def _close_ws(self) -> None:
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        self._ws = None

    async def _disconnect(self) -> None:
        await self._close_ws()
        if self._session is not None:
            await self._session.close()
            self._session = None
