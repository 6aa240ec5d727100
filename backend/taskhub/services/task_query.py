"""Pure filtering, sorting and statistics over a task collection."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from taskhub.core.time import as_utc, utcnow
from taskhub.schemas.tasks import TaskFilters, TaskStats

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from taskhub.schemas.tasks import SortKey, TaskRead

PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}

# Stands in for "no due date": later than any real date.
_NO_DUE_DATE = datetime.max.replace(tzinfo=UTC)

# Keys whose `desc` order is the natural ascending comparison (A before Z).
_ALPHABETICAL_KEYS = frozenset({"title"})


def _title_key(task: TaskRead) -> Any:
    return (task.title.casefold(), task.title)


def _due_date_key(task: TaskRead) -> Any:
    if task.due_date is None:
        return _NO_DUE_DATE
    return as_utc(task.due_date)


def _priority_key(task: TaskRead) -> Any:
    return PRIORITY_RANK.get(task.priority, 0)


def _created_at_key(task: TaskRead) -> Any:
    return as_utc(task.created_at)


_SORT_KEYS: dict[SortKey, Callable[[TaskRead], Any]] = {
    "title": _title_key,
    "dueDate": _due_date_key,
    "priority": _priority_key,
    "createdAt": _created_at_key,
}


def _matches_search(task: TaskRead, needle: str) -> bool:
    if needle in task.title.lower():
        return True
    if task.description and needle in task.description.lower():
        return True
    return any(needle in tag.lower() for tag in task.tags)


def filter_and_sort_tasks(
    tasks: Iterable[TaskRead],
    filters: TaskFilters | None = None,
) -> list[TaskRead]:
    """Return the tasks matching every filter, ordered by the selected key.

    Under `desc` dates and priorities put larger values first (newest,
    highest priority, latest due date with undated tasks ahead of all) while
    titles read A to Z; `asc` reverses each. Ties keep their collection order.
    """
    filters = filters or TaskFilters()
    selected = list(tasks)

    if filters.status != "all":
        selected = [task for task in selected if task.status == filters.status]
    if filters.priority != "all":
        selected = [task for task in selected if task.priority == filters.priority]
    needle = filters.search.lower()
    if needle:
        selected = [task for task in selected if _matches_search(task, needle)]

    key = _SORT_KEYS.get(filters.sort_by, _created_at_key)
    reverse = filters.sort_order == "desc"
    if filters.sort_by in _ALPHABETICAL_KEYS:
        reverse = not reverse
    selected.sort(key=key, reverse=reverse)
    return selected


def is_overdue(task: TaskRead, *, now: datetime | None = None) -> bool:
    """Pending tasks whose due date is strictly in the past."""
    if task.status != "pending" or task.due_date is None:
        return False
    return as_utc(task.due_date) < as_utc(now or utcnow())


def compute_task_stats(tasks: Sequence[TaskRead], *, now: datetime | None = None) -> TaskStats:
    """Count totals over the unfiltered collection."""
    now = now or utcnow()
    total = len(tasks)
    completed = sum(1 for task in tasks if task.status == "completed")
    overdue = sum(1 for task in tasks if is_overdue(task, now=now))
    return TaskStats(total=total, completed=completed, pending=total - completed, overdue=overdue)
