"""
Cron task scheduler.

Generic recurring background jobs driven by cron expressions:
- Expressions validated and expanded with croniter
- Lifecycle events delivered to registered listeners
- Pause/resume without losing the registration
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable

from croniter import croniter
from loguru import logger

from whopbot.errors import InvalidCronExpressionError
from whopbot.scheduler.timers import Timers


class SchedulerEventType(str, Enum):
    """Lifecycle events emitted by the cron scheduler."""
    SCHEDULED = "task:scheduled"
    STARTED = "task:started"
    COMPLETED = "task:completed"
    FAILED = "task:failed"
    CANCELLED = "task:cancelled"


@dataclass
class CronTask:
    """A recurring job identified by ``id``."""
    id: str
    name: str
    expression: str
    is_active: bool = True
    payload: dict[str, Any] = field(default_factory=dict)
    last_run: datetime | None = None
    next_run: datetime | None = None
    run_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "expression": self.expression,
            "is_active": self.is_active,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "run_count": self.run_count,
        }


@dataclass
class SchedulerEvent:
    type: SchedulerEventType
    task_id: str
    timestamp: datetime
    error: str | None = None


TaskCallback = Callable[[CronTask], Awaitable[Any]]
SchedulerListener = Callable[[SchedulerEvent], Any]


def validate_cron_expression(expression: str) -> None:
    """Raise InvalidCronExpressionError unless ``expression`` is a valid cron string."""
    if not expression or not croniter.is_valid(expression):
        raise InvalidCronExpressionError(f"Invalid cron expression: {expression!r}")


class CronScheduler:
    """
    Schedules callbacks on cron expressions using the shared timer service.

    Each task owns exactly one pending one-shot timer that is re-armed after
    every firing, so re-scheduling an id always replaces the previous timer.
    """

    TIMER_PREFIX = "cron:"

    def __init__(self, timers: Timers):
        self._timers = timers
        self._tasks: dict[str, CronTask] = {}
        self._callbacks: dict[str, TaskCallback] = {}
        self._listeners: list[SchedulerListener] = []

    def add_listener(self, listener: SchedulerListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SchedulerListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def schedule_task(self, task: CronTask, callback: TaskCallback) -> str:
        """
        Install or replace a task.

        Args:
            task: Task definition; ``task.id`` is the registry key.
            callback: Coroutine called with the task on every firing.

        Returns:
            The task id.

        Raises:
            InvalidCronExpressionError: If the expression does not parse.
        """
        validate_cron_expression(task.expression)

        if task.id in self._tasks:
            self._timers.cancel(self._timer_id(task.id))

        self._tasks[task.id] = task
        self._callbacks[task.id] = callback
        if task.is_active:
            self._arm(task)

        logger.info(f"Scheduled task {task.name} ({task.id}): {task.expression}")
        self._emit(SchedulerEventType.SCHEDULED, task.id)
        return task.id

    def cancel_task(self, task_id: str) -> bool:
        task = self._tasks.pop(task_id, None)
        if task is None:
            return False

        self._callbacks.pop(task_id, None)
        self._timers.cancel(self._timer_id(task_id))
        task.is_active = False
        task.next_run = None
        self._emit(SchedulerEventType.CANCELLED, task_id)
        return True

    def pause_task(self, task_id: str) -> bool:
        task = self._tasks.get(task_id)
        if task is None:
            return False

        self._timers.cancel(self._timer_id(task_id))
        task.is_active = False
        task.next_run = None
        logger.info(f"Paused task {task_id}")
        return True

    def resume_task(self, task_id: str) -> bool:
        task = self._tasks.get(task_id)
        if task is None:
            return False

        task.is_active = True
        self._arm(task)
        logger.info(f"Resumed task {task_id}")
        return True

    def get_task(self, task_id: str) -> CronTask | None:
        return self._tasks.get(task_id)

    def get_active_tasks(self) -> list[CronTask]:
        return [t for t in self._tasks.values() if t.is_active]

    def get_all_tasks(self) -> list[CronTask]:
        return list(self._tasks.values())

    def stop_all(self) -> int:
        """Cancel every task, emitting a cancellation event for each."""
        ids = list(self._tasks)
        for task_id in ids:
            self.cancel_task(task_id)
        if ids:
            logger.info(f"Stopped {len(ids)} scheduled tasks")
        return len(ids)

    def _timer_id(self, task_id: str) -> str:
        return f"{self.TIMER_PREFIX}{task_id}"

    def _arm(self, task: CronTask) -> None:
        now = self._timers.now()
        base = datetime.fromtimestamp(now)
        next_run = croniter(task.expression, base).get_next(datetime)
        task.next_run = next_run

        delay = max(0.0, next_run.timestamp() - now)
        self._timers.call_later(
            self._timer_id(task.id),
            delay,
            lambda: self._fire(task.id),
        )

    async def _fire(self, task_id: str) -> None:
        task = self._tasks.get(task_id)
        callback = self._callbacks.get(task_id)
        if task is None or callback is None or not task.is_active:
            return

        task.last_run = datetime.fromtimestamp(self._timers.now())
        task.run_count += 1
        self._emit(SchedulerEventType.STARTED, task_id)

        try:
            await callback(task)
        except Exception as e:
            logger.error(f"Task {task.name} ({task_id}) failed: {e}")
            self._emit(SchedulerEventType.FAILED, task_id, error=str(e))
        else:
            self._emit(SchedulerEventType.COMPLETED, task_id)

        # The callback may have cancelled, paused or replaced this task
        if self._tasks.get(task_id) is task and task.is_active:
            self._arm(task)

    def _emit(
        self,
        event_type: SchedulerEventType,
        task_id: str,
        error: str | None = None,
    ) -> None:
        event = SchedulerEvent(
            type=event_type,
            task_id=task_id,
            timestamp=datetime.fromtimestamp(self._timers.now()),
            error=error,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Scheduler listener failed for {event_type.value}: {e}")
