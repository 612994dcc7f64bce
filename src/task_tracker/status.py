"""
Due-date status classification and task statistics.

Every function takes the current date explicitly; nothing here reads a clock.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Dict, Iterable, Mapping, Optional, Union

from .models import TaskStatus

CalendarDate = Union[date, datetime]

_LABELS = {
    TaskStatus.DONE: "Done",
    TaskStatus.MISSED: "Missed/Late",
    TaskStatus.DUE_TODAY: "Due Today",
    TaskStatus.UPCOMING: "Upcoming",
}


def _as_date(value: CalendarDate) -> date:
    # datetime is a subclass of date; drop the time-of-day part
    if isinstance(value, datetime):
        return value.date()
    return value


# PUBLIC_INTERFACE
def classify(due_date: CalendarDate, is_completed: bool, today: CalendarDate) -> TaskStatus:
    """
    Classify a task from its due date and completion flag.

    Completed tasks are always ``done``. Otherwise the due date is compared to
    ``today`` at day granularity: earlier is ``missed``, equal is
    ``due-today``, later is ``upcoming``.
    """
    if is_completed:
        return TaskStatus.DONE

    due = _as_date(due_date)
    current = _as_date(today)
    if due < current:
        return TaskStatus.MISSED
    if due == current:
        return TaskStatus.DUE_TODAY
    return TaskStatus.UPCOMING


# PUBLIC_INTERFACE
def classify_task(task: Mapping, today: CalendarDate) -> TaskStatus:
    """Classify a task record (any mapping with due_date and is_completed)."""
    return classify(task["due_date"], bool(task["is_completed"]), today)


def status_label(status: TaskStatus) -> str:
    return _LABELS[TaskStatus(status)]


# PUBLIC_INTERFACE
def completion_timestamp(
    was_completed: bool,
    is_completed: bool,
    current: Optional[datetime],
    now: datetime,
) -> Optional[datetime]:
    """
    Return the completed_at value after a completion flag change.

    incomplete -> complete stamps ``now``; complete -> incomplete clears it;
    an unchanged flag keeps ``current``.
    """
    if is_completed and not was_completed:
        return now
    if not is_completed:
        return None
    return current


@dataclass(frozen=True)
class TaskStats:
    total: int = 0
    done: int = 0
    missed: int = 0
    due_today: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


# PUBLIC_INTERFACE
def aggregate(tasks: Iterable[Mapping], today: CalendarDate) -> TaskStats:
    """Count total, done, missed and due-today tasks in a single pass."""
    total = done = missed = due_today = 0
    for task in tasks:
        total += 1
        status = classify_task(task, today)
        if status is TaskStatus.DONE:
            done += 1
        elif status is TaskStatus.MISSED:
            missed += 1
        elif status is TaskStatus.DUE_TODAY:
            due_today += 1
    return TaskStats(total=total, done=done, missed=missed, due_today=due_today)
