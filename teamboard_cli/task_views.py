"""Filtered task views and dashboard statistics.

Everything here is a pure function of the fetched task collection and the
local calendar date. Dates compare lexicographically as ``YYYY-MM-DD``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable

from .records import Task

UNASSIGNED_LABEL = "미배정"
DEFAULT_LIST_LIMIT = 5


class FilterKind(str, Enum):
    PROGRESS = "progress"
    TODAY = "today"
    OVERDUE = "overdue"
    WITHIN_7_DAYS = "within7days"
    URGENT = "urgent"
    COMPLETED = "completed"


FILTER_SYNONYMS: dict[str, FilterKind] = {
    "in-progress": FilterKind.PROGRESS,
    "due-today": FilterKind.TODAY,
    "due-within-7-days": FilterKind.WITHIN_7_DAYS,
    "within-7-days": FilterKind.WITHIN_7_DAYS,
}

FILTER_TITLES: dict[FilterKind, tuple[str, str]] = {
    FilterKind.PROGRESS: ("In progress", "Tasks that are not completed yet"),
    FilterKind.TODAY: ("Due today", "Open tasks due today"),
    FilterKind.OVERDUE: ("Overdue", "Open tasks past their due date"),
    FilterKind.WITHIN_7_DAYS: ("Due within 7 days", "Open tasks due between today and a week from today"),
    FilterKind.URGENT: ("Urgent", "Open tasks flagged urgent"),
    FilterKind.COMPLETED: ("Completed", "Tasks marked completed"),
}


def parse_filter_kind(raw: str) -> FilterKind | None:
    key = (raw or "").strip().lower()
    if key in FILTER_SYNONYMS:
        return FILTER_SYNONYMS[key]
    try:
        return FilterKind(key)
    except ValueError:
        return None


def today_iso(today: date | None = None) -> str:
    return (today or date.today()).isoformat()


def plus_days(day: str, days: int) -> str:
    return (date.fromisoformat(day) + timedelta(days=days)).isoformat()


def assignee_label(task: Task) -> str:
    return task.assignee.strip() or UNASSIGNED_LABEL


def matches(task: Task, kind: FilterKind, today: str) -> bool:
    due = task.due_date
    if kind is FilterKind.COMPLETED:
        return task.completed
    if task.completed:
        return False
    if kind is FilterKind.PROGRESS:
        return True
    if kind is FilterKind.URGENT:
        return task.urgent
    if not due:
        return False
    if kind is FilterKind.TODAY:
        return due == today
    if kind is FilterKind.OVERDUE:
        return due < today
    if kind is FilterKind.WITHIN_7_DAYS:
        return today <= due <= plus_days(today, 7)
    raise ValueError(f"unknown filter: {kind}")


def filter_tasks(tasks: Iterable[Task], kind: FilterKind, today: str) -> list[Task]:
    return [t for t in tasks if matches(t, kind, today)]


def tasks_for_assignee(tasks: Iterable[Task], name: str) -> list[Task]:
    return [t for t in tasks if not t.completed and assignee_label(t) == name]


@dataclass(frozen=True)
class TaskStats:
    total: int
    completed: int
    in_progress: int
    urgent: int
    today: int
    overdue: int
    within_7_days: int
    by_assignee: dict[str, int]


def compute_stats(tasks: Iterable[Task], today: str) -> TaskStats:
    items = list(tasks)
    completed = sum(1 for t in items if t.completed)
    by_assignee: dict[str, int] = {}
    for t in items:
        if not t.completed:
            label = assignee_label(t)
            by_assignee[label] = by_assignee.get(label, 0) + 1
    return TaskStats(
        total=len(items),
        completed=completed,
        in_progress=len(items) - completed,
        urgent=len(filter_tasks(items, FilterKind.URGENT, today)),
        today=len(filter_tasks(items, FilterKind.TODAY, today)),
        overdue=len(filter_tasks(items, FilterKind.OVERDUE, today)),
        within_7_days=len(filter_tasks(items, FilterKind.WITHIN_7_DAYS, today)),
        by_assignee=by_assignee,
    )


def recent_tasks(tasks: Iterable[Task], limit: int = DEFAULT_LIST_LIMIT) -> list[Task]:
    open_tasks = [t for t in tasks if not t.completed]
    open_tasks.sort(key=lambda t: t.updated_at, reverse=True)
    return open_tasks[:limit]


def urgent_tasks(tasks: Iterable[Task], limit: int = DEFAULT_LIST_LIMIT) -> list[Task]:
    return [t for t in tasks if t.urgent and not t.completed][:limit]
