from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from .models import Priority, TaskStatus
from .status import CalendarDate, classify_task

ALL = "all"

T = TypeVar("T", bound=Mapping)

StatusFilter = Union[TaskStatus, str, None]
PriorityFilter = Union[Priority, str, None]


@dataclass(frozen=True)
class TaskQuery:
    """
    Query parameters for listing tasks.
    """
    status: str = ALL  # allowed: all, done, missed, due-today, upcoming
    priority: str = ALL  # allowed: all, low, medium, high
    search: Optional[str] = None
    limit: int = 50
    offset: int = 0


def _is_all(value: Optional[str]) -> bool:
    return value is None or value == ALL


def _matches_text(task: Mapping, needle: str) -> bool:
    if needle in (task["title"] or "").lower():
        return True
    description = task.get("description")
    return bool(description) and needle in description.lower()


# PUBLIC_INTERFACE
def filter_tasks(
    tasks: Iterable[T],
    status: StatusFilter = ALL,
    priority: PriorityFilter = ALL,
    search: Optional[str] = None,
    *,
    today: CalendarDate,
) -> List[T]:
    """
    Return the tasks matching every given filter, in their original order.

    - status: keep tasks whose derived status equals it ('all' or None disables)
    - priority: keep tasks with that priority ('all' or None disables)
    - search: case-insensitive substring of title or description; a task
      without a description can only match on its title
    """
    wanted_status = None if _is_all(status) else TaskStatus(status)
    wanted_priority = None if _is_all(priority) else Priority(priority).value
    needle = (search or "").strip().lower()

    result: List[T] = []
    for task in tasks:
        if wanted_priority is not None and task["priority"] != wanted_priority:
            continue
        if needle and not _matches_text(task, needle):
            continue
        if wanted_status is not None and classify_task(task, today) is not wanted_status:
            continue
        result.append(task)
    return result


# PUBLIC_INTERFACE
def apply_query(tasks: Iterable[T], query: TaskQuery, *, today: CalendarDate) -> Tuple[List[T], int]:
    """Filter with the query, then slice by offset/limit. Returns (page, total matching)."""
    matched = filter_tasks(tasks, query.status, query.priority, query.search, today=today)
    start = max(query.offset, 0)
    end = start + max(query.limit, 0)
    return matched[start:end], len(matched)
