import pytest

from teamboard_cli.records import Task
from teamboard_cli.task_views import UNASSIGNED_LABEL
from teamboard_cli.task_views import FilterKind
from teamboard_cli.task_views import assignee_label
from teamboard_cli.task_views import compute_stats
from teamboard_cli.task_views import filter_tasks
from teamboard_cli.task_views import parse_filter_kind
from teamboard_cli.task_views import plus_days
from teamboard_cli.task_views import recent_tasks
from teamboard_cli.task_views import tasks_for_assignee
from teamboard_cli.task_views import urgent_tasks

TODAY = "2024-06-10"


def _task(task_id: str, **kwargs) -> Task:
    return Task(id=task_id, **kwargs)


@pytest.fixture
def board() -> list[Task]:
    return [
        _task("t-today", assignee="Alice", due_date="2024-06-10", updated_at="2024-06-01T00:00:00Z"),
        _task("t-overdue", assignee="Bob", due_date="2024-06-09", urgent=True, updated_at="2024-06-05T00:00:00Z"),
        _task("t-week", assignee="Alice", due_date="2024-06-17", updated_at="2024-06-03T00:00:00Z"),
        _task("t-later", assignee="", due_date="2024-06-18", updated_at="2024-06-02T00:00:00Z"),
        _task("t-nodue", assignee="  ", urgent=True, updated_at="2024-06-04T00:00:00Z"),
        _task("t-done", assignee="Bob", due_date="2024-06-01", completed=True, urgent=True, updated_at="2024-06-09T00:00:00Z"),
    ]


def _ids(tasks: list[Task]) -> list[str]:
    return [t.id for t in tasks]


def test_due_today_is_not_overdue():
    task = _task("t1", due_date="2024-06-10", completed=False)
    assert _ids(filter_tasks([task], FilterKind.TODAY, TODAY)) == ["t1"]
    assert filter_tasks([task], FilterKind.OVERDUE, TODAY) == []


def test_completed_and_progress_partition_the_board(board):
    progress = set(_ids(filter_tasks(board, FilterKind.PROGRESS, TODAY)))
    completed = set(_ids(filter_tasks(board, FilterKind.COMPLETED, TODAY)))
    assert progress.isdisjoint(completed)
    assert progress | completed == set(_ids(board))


def test_overdue_and_today_never_overlap(board):
    overdue = set(_ids(filter_tasks(board, FilterKind.OVERDUE, TODAY)))
    today = set(_ids(filter_tasks(board, FilterKind.TODAY, TODAY)))
    assert overdue == {"t-overdue"}
    assert today == {"t-today"}
    assert overdue.isdisjoint(today)


def test_within_seven_days_is_inclusive_and_contains_today(board):
    within = _ids(filter_tasks(board, FilterKind.WITHIN_7_DAYS, TODAY))
    assert within == ["t-today", "t-week"]
    assert set(_ids(filter_tasks(board, FilterKind.TODAY, TODAY))) <= set(within)


def test_completed_tasks_are_excluded_from_date_and_urgent_buckets(board):
    for kind in (FilterKind.TODAY, FilterKind.OVERDUE, FilterKind.WITHIN_7_DAYS, FilterKind.URGENT):
        assert "t-done" not in _ids(filter_tasks(board, kind, TODAY))
    assert _ids(filter_tasks(board, FilterKind.URGENT, TODAY)) == ["t-overdue", "t-nodue"]


def test_tasks_without_due_date_fall_out_of_date_buckets(board):
    for kind in (FilterKind.TODAY, FilterKind.OVERDUE, FilterKind.WITHIN_7_DAYS):
        assert "t-nodue" not in _ids(filter_tasks(board, kind, TODAY))


def test_blank_assignee_is_grouped_as_unassigned(board):
    assert assignee_label(board[3]) == UNASSIGNED_LABEL
    assert assignee_label(board[4]) == UNASSIGNED_LABEL
    assert _ids(tasks_for_assignee(board, UNASSIGNED_LABEL)) == ["t-later", "t-nodue"]
    assert _ids(tasks_for_assignee(board, "Bob")) == ["t-overdue"]


def test_compute_stats_counts(board):
    stats = compute_stats(board, TODAY)
    assert stats.total == 6
    assert stats.completed == 1
    assert stats.in_progress == 5
    assert stats.urgent == 2
    assert stats.today == 1
    assert stats.overdue == 1
    assert stats.within_7_days == 2
    assert stats.by_assignee == {"Alice": 2, "Bob": 1, UNASSIGNED_LABEL: 2}


def test_compute_stats_empty_board():
    stats = compute_stats([], TODAY)
    assert stats.total == 0
    assert stats.by_assignee == {}


def test_recent_tasks_orders_open_tasks_by_update_time(board):
    assert _ids(recent_tasks(board)) == ["t-overdue", "t-nodue", "t-week", "t-later", "t-today"]
    assert _ids(recent_tasks(board, limit=2)) == ["t-overdue", "t-nodue"]


def test_urgent_tasks_caps_at_five():
    tasks = [_task(f"u{i}", urgent=True) for i in range(7)]
    assert _ids(urgent_tasks(tasks)) == ["u0", "u1", "u2", "u3", "u4"]


def test_parse_filter_kind_accepts_synonyms():
    assert parse_filter_kind("today") is FilterKind.TODAY
    assert parse_filter_kind(" Due-Today ") is FilterKind.TODAY
    assert parse_filter_kind("within-7-days") is FilterKind.WITHIN_7_DAYS
    assert parse_filter_kind("in-progress") is FilterKind.PROGRESS
    assert parse_filter_kind("someday") is None


def test_plus_days_crosses_month_boundary():
    assert plus_days("2024-06-28", 7) == "2024-07-05"
