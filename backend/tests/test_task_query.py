# ruff: noqa: INP001
"""Filter, sort and statistics behaviour of the task list view."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from taskhub.schemas.tasks import TaskFilters, TaskRead
from taskhub.services.task_query import compute_task_stats, filter_and_sort_tasks, is_overdue

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def _task(
    task_id: str,
    title: str,
    *,
    status: str = "pending",
    priority: str = "medium",
    created_at: datetime | None = None,
    due_date: datetime | None = None,
    description: str = "",
    tags: list[str] | None = None,
) -> TaskRead:
    created = created_at or NOW - timedelta(days=1)
    return TaskRead(
        id=task_id,
        user_id="user-1",
        title=title,
        description=description,
        status=status,
        priority=priority,
        due_date=due_date,
        tags=tags or [],
        created_at=created,
        updated_at=created,
    )


def _titles(tasks: list[TaskRead]) -> list[str]:
    return [task.title for task in tasks]


def test_default_filters_sort_newest_first() -> None:
    older = _task("1", "Older", created_at=NOW - timedelta(days=2))
    newer = _task("2", "Newer", created_at=NOW - timedelta(hours=1))

    result = filter_and_sort_tasks([older, newer])

    assert _titles(result) == ["Newer", "Older"]


def test_created_at_ascending_puts_oldest_first() -> None:
    older = _task("1", "Older", created_at=NOW - timedelta(days=2))
    newer = _task("2", "Newer", created_at=NOW - timedelta(hours=1))

    result = filter_and_sort_tasks([newer, older], TaskFilters(sort_order="asc"))

    assert _titles(result) == ["Older", "Newer"]


def test_priority_descending_puts_high_first() -> None:
    t1 = NOW - timedelta(days=2)
    t2 = NOW - timedelta(days=1)
    tasks = [
        _task("1", "Buy milk", priority="low", created_at=t1),
        _task("2", "File taxes", priority="high", created_at=t2),
    ]

    result = filter_and_sort_tasks(tasks, TaskFilters(sort_by="priority", sort_order="desc"))

    assert _titles(result) == ["File taxes", "Buy milk"]


def test_priority_ascending_puts_low_first() -> None:
    tasks = [
        _task("1", "High", priority="high"),
        _task("2", "Low", priority="low"),
        _task("3", "Medium", priority="medium"),
    ]

    result = filter_and_sort_tasks(tasks, TaskFilters(sort_by="priority", sort_order="asc"))

    assert _titles(result) == ["Low", "Medium", "High"]


def test_due_date_ascending_sorts_undated_tasks_last() -> None:
    tasks = [
        _task("1", "No date"),
        _task("2", "Later", due_date=NOW + timedelta(days=5)),
        _task("3", "Sooner", due_date=NOW + timedelta(days=1)),
    ]

    result = filter_and_sort_tasks(tasks, TaskFilters(sort_by="dueDate", sort_order="asc"))

    assert _titles(result) == ["Sooner", "Later", "No date"]


def test_due_date_descending_puts_undated_tasks_first() -> None:
    tasks = [
        _task("1", "Sooner", due_date=NOW + timedelta(days=1)),
        _task("2", "No date"),
        _task("3", "Later", due_date=NOW + timedelta(days=5)),
    ]

    result = filter_and_sort_tasks(tasks, TaskFilters(sort_by="dueDate", sort_order="desc"))

    assert _titles(result) == ["No date", "Later", "Sooner"]


def test_due_date_sort_handles_mixed_naive_and_aware_datetimes() -> None:
    tasks = [
        _task("1", "Aware", due_date=NOW + timedelta(days=2)),
        _task("2", "Naive", due_date=(NOW + timedelta(days=1)).replace(tzinfo=None)),
    ]

    result = filter_and_sort_tasks(tasks, TaskFilters(sort_by="dueDate", sort_order="asc"))

    assert _titles(result) == ["Naive", "Aware"]


def test_title_sort_descending_reads_a_to_z_case_insensitively() -> None:
    tasks = [_task("1", "Banana"), _task("2", "apple"), _task("3", "Cherry")]

    descending = filter_and_sort_tasks(tasks, TaskFilters(sort_by="title", sort_order="desc"))
    ascending = filter_and_sort_tasks(tasks, TaskFilters(sort_by="title", sort_order="asc"))

    assert _titles(descending) == ["apple", "Banana", "Cherry"]
    assert _titles(ascending) == ["Cherry", "Banana", "apple"]


def test_equal_keys_keep_collection_order() -> None:
    tasks = [_task("1", "First"), _task("2", "Second"), _task("3", "Third")]

    result = filter_and_sort_tasks(tasks, TaskFilters(sort_by="priority"))

    assert _titles(result) == ["First", "Second", "Third"]


def test_status_filter_keeps_only_matching_tasks() -> None:
    tasks = [
        _task("1", "Done", status="completed"),
        _task("2", "Open", status="pending"),
    ]

    assert _titles(filter_and_sort_tasks(tasks, TaskFilters(status="completed"))) == ["Done"]
    assert _titles(filter_and_sort_tasks(tasks, TaskFilters(status="pending"))) == ["Open"]


def test_search_matches_title_description_or_tag_case_insensitively() -> None:
    tasks = [
        _task("1", "Call PLUMBER"),
        _task("2", "Groceries", description="Remember the plumbing tape"),
        _task("3", "Weekend", tags=["Plumbing"]),
        _task("4", "Unrelated"),
    ]

    result = filter_and_sort_tasks(tasks, TaskFilters(search="plumb", sort_by="title", sort_order="desc"))

    assert _titles(result) == ["Call PLUMBER", "Groceries", "Weekend"]


def test_empty_search_skips_text_filter() -> None:
    tasks = [_task("1", "Alpha"), _task("2", "Beta")]

    assert len(filter_and_sort_tasks(tasks, TaskFilters(search=""))) == 2


def test_filters_combine_with_logical_and() -> None:
    tasks = [
        _task("1", "match", status="completed", priority="high"),
        _task("2", "match", status="pending", priority="high"),
        _task("3", "match", status="completed", priority="low"),
        _task("4", "zzz", status="completed", priority="high"),
    ]

    result = filter_and_sort_tasks(
        tasks,
        TaskFilters(status="completed", priority="high", search="a"),
    )

    assert [task.id for task in result] == ["1"]


def test_filtering_does_not_mutate_input() -> None:
    tasks = [_task("1", "B"), _task("2", "A")]
    snapshot = list(tasks)

    filter_and_sort_tasks(tasks, TaskFilters(sort_by="title", sort_order="asc"))

    assert tasks == snapshot


def test_stats_count_overdue_pending_tasks_only() -> None:
    yesterday = NOW - timedelta(days=1)
    tasks = [
        _task("1", "Late", due_date=yesterday),
        _task("2", "Late but done", status="completed", due_date=yesterday),
        _task("3", "Future", due_date=NOW + timedelta(days=1)),
        _task("4", "Undated"),
    ]

    stats = compute_task_stats(tasks, now=NOW)

    assert stats.total == 4
    assert stats.completed == 1
    assert stats.pending == 3
    assert stats.overdue == 1


def test_completing_an_overdue_task_removes_it_from_overdue() -> None:
    late = _task("1", "Late", due_date=NOW - timedelta(days=1))

    assert compute_task_stats([late], now=NOW).overdue == 1
    done = late.model_copy(update={"status": "completed"})
    assert compute_task_stats([done], now=NOW).overdue == 0


def test_task_without_due_date_is_never_overdue() -> None:
    assert is_overdue(_task("1", "Undated"), now=NOW) is False


def test_due_exactly_now_is_not_overdue() -> None:
    assert is_overdue(_task("1", "Edge", due_date=NOW), now=NOW) is False


def test_empty_collection_yields_zero_stats_and_no_items() -> None:
    stats = compute_task_stats([], now=NOW)

    assert (stats.total, stats.completed, stats.pending, stats.overdue) == (0, 0, 0, 0)
    assert filter_and_sort_tasks([], TaskFilters(status="pending")) == []
