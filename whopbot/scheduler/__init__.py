"""Deferred work: timers, cron tasks and recurring chat messages."""

from whopbot.scheduler.cron import (
    CronScheduler,
    CronTask,
    SchedulerEvent,
    SchedulerEventType,
    validate_cron_expression,
)
from whopbot.scheduler.recurring import RecurringMessageJob, RecurringMessageScheduler
from whopbot.scheduler.timers import TimerService, Timers

__all__ = [
    "TimerService",
    "Timers",
    "CronScheduler",
    "CronTask",
    "SchedulerEvent",
    "SchedulerEventType",
    "validate_cron_expression",
    "RecurringMessageJob",
    "RecurringMessageScheduler",
]
