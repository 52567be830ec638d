"""
Error hierarchy for whopbot.

Errors are grouped by how the dispatcher treats them:
- UsageError: user-facing, never notified externally
- PollError / ScheduleError: expected state conflicts raised by the engines
- PlatformAPIError / WebhookError: operational failures
"""


class WhopBotError(Exception):
    """Base class for all whopbot errors."""


class UsageError(WhopBotError):
    """Malformed or missing command arguments."""


class PollError(WhopBotError):
    """Base class for poll lifecycle errors."""


class DuplicatePollError(PollError):
    """A poll with the same id already exists."""


class InvalidPollOptionsError(PollError):
    """A poll needs at least two options with unique ids."""


class ScheduleError(WhopBotError):
    """Base class for recurring message errors."""


class MessageTooLongError(ScheduleError):
    pass


class TooManySchedulesError(ScheduleError):
    pass


class IntervalTooLargeError(ScheduleError):
    pass


class InvalidCronExpressionError(WhopBotError):
    """The cron expression could not be parsed."""


class PlatformAPIError(WhopBotError):
    """The remote platform API returned an error."""


class WebhookError(WhopBotError):
    """A notification webhook could not be delivered."""
