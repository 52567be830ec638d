"""
Poll engine.

Timed single-choice polls:
- One vote per user, re-voting replaces the earlier vote
- Auto-end through the shared timer service
- Results announced exactly once, with winner and tie handling
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from loguru import logger

from whopbot.errors import DuplicatePollError, InvalidPollOptionsError
from whopbot.hooks.notifications import poll_results_notification
from whopbot.hooks.service import NotificationSink
from whopbot.scheduler.timers import Timers
from whopbot.utils.formatting import plural

SendMessage = Callable[[str, str, str], Awaitable[Any]]


@dataclass
class PollOption:
    id: str
    text: str


@dataclass
class PollVote:
    user_id: str
    option_id: str
    timestamp: datetime


@dataclass
class Poll:
    """A timed vote over a fixed option list."""
    id: str
    question: str
    options: list[PollOption]
    creator_id: str
    feed_id: str
    created_at: datetime
    expires_at: datetime
    feed_type: str = "chat_feed"
    votes: list[PollVote] = field(default_factory=list)
    is_active: bool = True

    def option(self, option_id: str) -> PollOption | None:
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None


@dataclass
class PollResult:
    option_id: str
    text: str
    votes: int
    percentage: float


def format_results_message(poll: Poll, results: list[PollResult]) -> str:
    """Render the chat announcement for an ended poll."""
    ranked = sorted(results, key=lambda r: r.votes, reverse=True)
    lines = "\n".join(
        f"{r.text}: {plural(r.votes, 'vote')} ({r.percentage:.1f}%)" for r in ranked
    )

    max_votes = max((r.votes for r in results), default=0)
    winners = [r for r in results if r.votes == max_votes]
    if max_votes == 0:
        winner_text = "No votes were cast."
    elif len(winners) == 1:
        winner_text = f"Winner: {winners[0].text}"
    else:
        winner_text = f"Tie between: {', '.join(w.text for w in winners)}"

    return (
        f"📊 **Poll Results: {poll.question}**\n\n{lines}\n\n{winner_text}"
        f"\n\nTotal votes: {len(poll.votes)}"
    )


class PollEngine:
    """
    Owns every poll in the process.

    Ended polls stay in memory so results remain queryable.
    """

    TIMER_PREFIX = "poll:"

    def __init__(
        self,
        timers: Timers,
        send_message: SendMessage,
        notifications: NotificationSink | None = None,
    ):
        self._timers = timers
        self._send_message = send_message
        self._notifications = notifications
        self._polls: dict[str, Poll] = {}

    def new_poll_id(self) -> str:
        """Generate an 8-character id not already in use."""
        while True:
            poll_id = uuid.uuid4().hex[:8]
            if poll_id not in self._polls:
                return poll_id

    def create_poll(
        self,
        poll_id: str,
        question: str,
        options: list[PollOption],
        creator_id: str,
        feed_id: str,
        duration_minutes: float = 5,
        feed_type: str = "chat_feed",
    ) -> Poll:
        """
        Create a poll and arm its auto-end timer.

        Raises:
            InvalidPollOptionsError: Fewer than two options, or duplicate ids.
            DuplicatePollError: ``poll_id`` is already registered.
        """
        if len(options) < 2:
            raise InvalidPollOptionsError("A poll must have at least 2 options")
        if len({opt.id for opt in options}) != len(options):
            raise InvalidPollOptionsError("Poll option ids must be unique")
        if poll_id in self._polls:
            raise DuplicatePollError(f"Poll with ID {poll_id} already exists")

        now = self._timers.now()
        duration_seconds = duration_minutes * 60
        poll = Poll(
            id=poll_id,
            question=question,
            options=list(options),
            creator_id=creator_id,
            feed_id=feed_id,
            feed_type=feed_type,
            created_at=datetime.fromtimestamp(now),
            expires_at=datetime.fromtimestamp(now + duration_seconds),
        )
        self._polls[poll_id] = poll
        self._timers.call_later(
            self._timer_id(poll_id),
            duration_seconds,
            lambda: self._expire(poll_id),
        )

        logger.info(f"Poll created: {poll_id}, expires at {poll.expires_at}")
        return poll

    def cast_vote(self, poll_id: str, user_id: str, option_id: str) -> bool:
        """
        Record a user's vote, replacing any earlier vote by the same user.

        Returns:
            False if the poll is absent or ended, or the option is unknown.
        """
        poll = self._polls.get(poll_id)
        if poll is None:
            logger.debug(f"Poll {poll_id} not found")
            return False
        if not poll.is_active:
            logger.debug(f"Poll {poll_id} is not active")
            return False
        if poll.option(option_id) is None:
            logger.debug(f"Option {option_id} not found in poll {poll_id}")
            return False

        poll.votes = [v for v in poll.votes if v.user_id != user_id]
        poll.votes.append(PollVote(
            user_id=user_id,
            option_id=option_id,
            timestamp=datetime.fromtimestamp(self._timers.now()),
        ))
        logger.debug(f"Vote cast by {user_id} for option {option_id} in poll {poll_id}")
        return True

    def calculate_results(self, poll_id: str) -> list[PollResult] | None:
        """Per-option counts and percentages, in option order."""
        poll = self._polls.get(poll_id)
        if poll is None:
            return None

        total = len(poll.votes)
        results = []
        for opt in poll.options:
            count = sum(1 for v in poll.votes if v.option_id == opt.id)
            results.append(PollResult(
                option_id=opt.id,
                text=opt.text,
                votes=count,
                percentage=(count / total) * 100 if total else 0.0,
            ))
        return results

    async def end_poll(self, poll_id: str) -> list[PollResult] | None:
        """
        End a poll and announce its results.

        Safe to call more than once: only the first call on an active poll
        announces; later calls return None.
        """
        poll = self._polls.get(poll_id)
        if poll is None or not poll.is_active:
            return None

        # Flag first so a racing timer or manual end becomes a no-op
        poll.is_active = False
        self._timers.cancel(self._timer_id(poll_id))

        results = self.calculate_results(poll_id) or []

        try:
            await self._send_message(
                poll.feed_id,
                format_results_message(poll, results),
                poll.feed_type,
            )
            logger.info(f"Poll {poll_id} ended and results announced")
        except Exception as e:
            logger.error(f"Error announcing poll results for {poll_id}: {e}")

        if self._notifications is not None:
            await self._notifications.notify(poll_results_notification(poll, results))

        return results

    async def end_all_polls(self) -> int:
        """End every active poll. Returns the number ended."""
        ended = 0
        for poll in self.get_active_polls():
            if await self.end_poll(poll.id) is not None:
                ended += 1
        return ended

    def get_poll(self, poll_id: str) -> Poll | None:
        return self._polls.get(poll_id)

    def get_active_polls(self) -> list[Poll]:
        return [p for p in self._polls.values() if p.is_active]

    def get_recent_polls(self, limit: int = 10) -> list[Poll]:
        polls = sorted(self._polls.values(), key=lambda p: p.created_at, reverse=True)
        return polls[:limit]

    def _timer_id(self, poll_id: str) -> str:
        return f"{self.TIMER_PREFIX}{poll_id}"

    async def _expire(self, poll_id: str) -> None:
        await self.end_poll(poll_id)
