"""Tests for the websocket channel's reconnect behaviour."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from whopbot.channels.whop import WhopSocket
from whopbot.events.models import RouterEventType


@pytest.fixture
def router():
    router = MagicMock()
    router.emit = AsyncMock()
    router.handle_raw = AsyncMock()
    return router


def test_requires_credentials(router):
    with pytest.raises(ValueError):
        WhopSocket("wss://example.test/ws", "", "user_agent", router)


@pytest.mark.asyncio
async def test_backoff_until_attempts_exhausted(router, monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("whopbot.channels.whop.asyncio.sleep", fake_sleep)

    socket = WhopSocket(
        "wss://example.test/ws",
        "key",
        "user_agent",
        router,
        max_reconnect_attempts=3,
        reconnect_delay=1.0,
        max_reconnect_delay=3.0,
    )
    socket._connect = AsyncMock(side_effect=OSError("connection refused"))

    await socket.start()

    assert delays == [1.0, 2.0, 3.0]
    assert socket._connect.await_count == 4
    error_events = [
        call for call in router.emit.await_args_list
        if call.args[0] == RouterEventType.CONNECTION_ERROR
    ]
    assert len(error_events) == 4
    assert not socket.connected


@pytest.mark.asyncio
async def test_stop_before_start_is_safe(router):
    socket = WhopSocket("wss://example.test/ws", "key", "user_agent", router)
    await socket.stop()
    assert not socket.connected
