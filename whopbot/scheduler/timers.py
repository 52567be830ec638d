"""
Timer service.

Owns every deferred callback in the process:
- one-shot timers (poll auto-end, reminders, cron ticks)
- repeating timers (recurring messages)
- cancel-by-id, including a timer cancelling itself from its own callback
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from loguru import logger

TimerCallback = Callable[[], Awaitable[Any]]


class Timers(Protocol):
    """Interface shared by the asyncio timer service and test doubles."""

    def now(self) -> float: ...

    def call_later(self, timer_id: str, delay: float, callback: TimerCallback) -> None: ...

    def call_every(self, timer_id: str, interval: float, callback: TimerCallback) -> None: ...

    def cancel(self, timer_id: str) -> bool: ...

    def has(self, timer_id: str) -> bool: ...

    def shutdown(self) -> int: ...


@dataclass
class _Timer:
    timer_id: str
    delay: float
    repeat: bool
    callback: TimerCallback
    task: asyncio.Task | None = None
    cancelled: bool = False
    running: bool = False
    fire_count: int = 0


class TimerService:
    """
    Schedules coroutine callbacks on the running event loop.

    Features:
    - Re-registering an id cancels the previous timer first
    - Cancelling an unknown id is a no-op that returns False
    - Callback exceptions are logged, never propagated
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._timers: dict[str, _Timer] = {}

    def now(self) -> float:
        """Current wall-clock time in seconds."""
        return self._clock()

    def call_later(self, timer_id: str, delay: float, callback: TimerCallback) -> None:
        """Run ``callback`` once after ``delay`` seconds."""
        self._install(_Timer(timer_id, max(0.0, delay), False, callback))

    def call_every(self, timer_id: str, interval: float, callback: TimerCallback) -> None:
        """Run ``callback`` every ``interval`` seconds until cancelled."""
        if interval <= 0:
            raise ValueError("Interval must be positive")
        self._install(_Timer(timer_id, interval, True, callback))

    def cancel(self, timer_id: str) -> bool:
        """
        Cancel a timer by id.

        Returns:
            True if a timer was registered under the id.
        """
        timer = self._timers.pop(timer_id, None)
        if timer is None:
            return False

        timer.cancelled = True
        # A callback cancelling its own timer must not cancel the task it runs in
        if timer.task is not None and not timer.running:
            timer.task.cancel()
        logger.debug(f"Timer cancelled: {timer_id}")
        return True

    def has(self, timer_id: str) -> bool:
        return timer_id in self._timers

    def active_ids(self) -> list[str]:
        return list(self._timers)

    def shutdown(self) -> int:
        """Cancel every timer. Returns the number cancelled."""
        ids = list(self._timers)
        for timer_id in ids:
            self.cancel(timer_id)
        return len(ids)

    def _install(self, timer: _Timer) -> None:
        self.cancel(timer.timer_id)
        self._timers[timer.timer_id] = timer
        timer.task = asyncio.get_running_loop().create_task(self._run(timer))

    async def _run(self, timer: _Timer) -> None:
        try:
            while not timer.cancelled:
                await asyncio.sleep(timer.delay)
                if timer.cancelled:
                    return

                if not timer.repeat:
                    # One-shot timers are gone before their callback runs
                    self._timers.pop(timer.timer_id, None)

                timer.running = True
                try:
                    await timer.callback()
                except Exception as e:
                    logger.error(f"Timer {timer.timer_id} callback failed: {e}")
                finally:
                    timer.running = False
                    timer.fire_count += 1

                if not timer.repeat:
                    return
        except asyncio.CancelledError:
            pass
