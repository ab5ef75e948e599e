import pytest

from teamboard_cli.cli_shared import UsageError
from teamboard_cli.task_views import FilterKind
from teamboard_cli.views import AdminView
from teamboard_cli.views import AllView
from teamboard_cli.views import AssigneeView
from teamboard_cli.views import DashboardView
from teamboard_cli.views import FilterView
from teamboard_cli.views import NoticesView
from teamboard_cli.views import needs_tasks
from teamboard_cli.views import parse_view
from teamboard_cli.views import view_selector


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, DashboardView()),
        ("", DashboardView()),
        ("dashboard", DashboardView()),
        ("ALL", AllView()),
        ("notices", NoticesView()),
        ("admin", AdminView()),
        ("overdue", FilterView(FilterKind.OVERDUE)),
        ("due-within-7-days", FilterView(FilterKind.WITHIN_7_DAYS)),
        ("assignee:김철수", AssigneeView("김철수")),
        ("Assignee: Bob ", AssigneeView("Bob")),
    ],
)
def test_parse_view(raw, expected):
    assert parse_view(raw) == expected


def test_parse_view_rejects_unknown_selector():
    with pytest.raises(UsageError, match="unknown view"):
        parse_view("calendar")


def test_parse_view_requires_assignee_name():
    with pytest.raises(UsageError, match="assignee"):
        parse_view("assignee:")


def test_view_selector_round_trips_through_parse_view():
    for raw in ("dashboard", "all", "notices", "admin", "today", "assignee:Alice"):
        assert view_selector(parse_view(raw)) == raw


def test_needs_tasks():
    assert needs_tasks(DashboardView())
    assert needs_tasks(FilterView(FilterKind.URGENT))
    assert not needs_tasks(NoticesView())
    assert not needs_tasks(AdminView())
