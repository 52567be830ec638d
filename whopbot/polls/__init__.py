"""Timed polls."""

from whopbot.polls.engine import (
    Poll,
    PollEngine,
    PollOption,
    PollResult,
    PollVote,
    format_results_message,
)

__all__ = [
    "Poll",
    "PollEngine",
    "PollOption",
    "PollResult",
    "PollVote",
    "format_results_message",
]
