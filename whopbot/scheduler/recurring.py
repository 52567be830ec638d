"""
Recurring chat messages.

User-created jobs that repeat a message in one feed:
- At most MAX_SCHEDULES_PER_FEED jobs per feed
- Intervals in minutes, hours or days, capped at seven days
- A job whose delivery fails stops itself
"""

import random
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable

from loguru import logger

from whopbot.errors import (
    IntervalTooLargeError,
    MessageTooLongError,
    TooManySchedulesError,
)
from whopbot.scheduler.timers import Timers
from whopbot.utils.formatting import plural

MAX_MESSAGE_LENGTH = 500
MAX_SCHEDULES_PER_FEED = 10
MAX_INTERVAL_SECONDS = 7 * 24 * 60 * 60

UNIT_SECONDS = {"m": 60, "h": 60 * 60, "d": 24 * 60 * 60}
UNIT_NAMES = {"m": "minute", "h": "hour", "d": "day"}

SendMessage = Callable[[str, str, str], Awaitable[Any]]

_BASE36 = string.digits + string.ascii_lowercase


@dataclass
class RecurringMessageJob:
    """A repeating announcement bound to one feed."""
    id: str
    message: str
    interval: int
    unit: str
    feed_id: str
    feed_type: str
    owner_user_id: str
    created_at: datetime

    @property
    def interval_seconds(self) -> int:
        return self.interval * UNIT_SECONDS[self.unit]

    @property
    def duration_text(self) -> str:
        return plural(self.interval, UNIT_NAMES[self.unit])


class RecurringMessageScheduler:
    """
    Registry of recurring message jobs.

    Each job owns one repeating timer in the shared timer service, keyed by
    the job id.
    """

    def __init__(self, timers: Timers, send_message: SendMessage):
        self._timers = timers
        self._send_message = send_message
        self._jobs: dict[str, RecurringMessageJob] = {}

    def schedule(
        self,
        feed_id: str,
        feed_type: str,
        owner_user_id: str,
        message: str,
        interval: int,
        unit: str,
    ) -> RecurringMessageJob:
        """
        Create a job and start its timer.

        Args:
            feed_id: Feed the message repeats in.
            feed_type: Feed type tag passed through to sends.
            owner_user_id: User who created the job.
            message: Text to repeat (at most 500 characters).
            interval: Positive interval value.
            unit: One of "m", "h", "d".

        Raises:
            MessageTooLongError, TooManySchedulesError, IntervalTooLargeError
        """
        if len(message) > MAX_MESSAGE_LENGTH:
            raise MessageTooLongError(
                f"Message too long. Maximum {MAX_MESSAGE_LENGTH} characters allowed."
            )

        if len(self.list_for_feed(feed_id)) >= MAX_SCHEDULES_PER_FEED:
            raise TooManySchedulesError(
                f"Maximum {MAX_SCHEDULES_PER_FEED} schedules per chat."
            )

        unit = unit.lower()
        if unit not in UNIT_SECONDS:
            raise ValueError(f"Invalid time unit: {unit}")
        if interval <= 0:
            raise ValueError("Interval must be > 0")
        if interval * UNIT_SECONDS[unit] > MAX_INTERVAL_SECONDS:
            raise IntervalTooLargeError("Maximum interval is 7 days.")

        job = RecurringMessageJob(
            id=self._new_job_id(feed_id),
            message=message,
            interval=interval,
            unit=unit,
            feed_id=feed_id,
            feed_type=feed_type,
            owner_user_id=owner_user_id,
            created_at=datetime.fromtimestamp(self._timers.now()),
        )
        self._jobs[job.id] = job
        self._timers.call_every(
            f"schedule:{job.id}",
            job.interval_seconds,
            lambda: self._tick(job.id),
        )

        logger.info(f"Created schedule {job.id}: \"{message}\" every {job.duration_text}")
        return job

    def stop(self, job_id: str) -> bool:
        job = self._jobs.pop(job_id, None)
        if job is None:
            return False
        self._timers.cancel(f"schedule:{job_id}")
        logger.info(f"Stopped schedule: {job_id}")
        return True

    def stop_all_for_feed(self, feed_id: str) -> int:
        """Stop every job in a feed. Returns the number stopped."""
        ids = [job.id for job in self._jobs.values() if job.feed_id == feed_id]
        for job_id in ids:
            self.stop(job_id)
        return len(ids)

    def stop_all(self) -> int:
        ids = list(self._jobs)
        for job_id in ids:
            self.stop(job_id)
        return len(ids)

    def list_for_feed(self, feed_id: str) -> list[RecurringMessageJob]:
        return [job for job in self._jobs.values() if job.feed_id == feed_id]

    def total_active(self) -> int:
        return len(self._jobs)

    def get(self, job_id: str) -> RecurringMessageJob | None:
        return self._jobs.get(job_id)

    async def _tick(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return

        try:
            await self._send_message(job.feed_id, f"🔔 {job.message}", job.feed_type)
            logger.debug(f"Scheduled message sent to feed {job.feed_id}")
        except Exception as e:
            logger.error(f"Error sending scheduled message {job_id}: {e}")
            if self.stop(job_id):
                logger.warning(f"Stopped failing schedule: {job_id}")

    def _new_job_id(self, feed_id: str) -> str:
        while True:
            millis = int(self._timers.now() * 1000)
            suffix = "".join(random.choices(_BASE36, k=9))
            job_id = f"{feed_id}-{millis}-{suffix}"
            if job_id not in self._jobs:
                return job_id
