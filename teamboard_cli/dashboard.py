from __future__ import annotations

from typing import Any, Iterable

from .api_client import TeamboardApi
from .cli_shared import UsageError
from .cli_shared import _cell
from .cli_shared import _format_table
from .records import Comment
from .records import Notice
from .records import Task
from .records import User
from .session import Identity
from .session import require_admin
from .task_views import FILTER_TITLES
from .task_views import TaskStats
from .task_views import compute_stats
from .task_views import filter_tasks
from .task_views import recent_tasks
from .task_views import tasks_for_assignee
from .task_views import today_iso
from .task_views import urgent_tasks
from .views import AdminView
from .views import AllView
from .views import AssigneeView
from .views import DashboardView
from .views import FilterView
from .views import NoticesView
from .views import View

SHORT_ID_LEN = 8

_STATUS_SECTIONS = (
    ("pending", "Pending approval"),
    ("approved", "Approved"),
    ("rejected", "Rejected"),
)


def _short_id(value: str) -> str:
    return value[:SHORT_ID_LEN] if value else "-"


def _short_date(value: str) -> str:
    return _cell((value or "")[:10])


def resolve_id(candidates: Iterable[str], given: str, *, label: str) -> str:
    """Resolve a full or unique partial id against known ids."""
    needle = (given or "").strip()
    if not needle:
        raise UsageError(f"missing {label} id")
    ids = list(candidates)
    if needle in ids:
        return needle
    found = [i for i in ids if i.startswith(needle)]
    if len(found) == 1:
        return found[0]
    if not found:
        raise UsageError(f"no {label} matches id {needle!r}")
    raise UsageError(f"{label} id {needle!r} is ambiguous ({len(found)} matches)")


def _task_rows(tasks: Iterable[Task]) -> list[list[str]]:
    rows = []
    for t in tasks:
        flags = [name for name, on in (("urgent", t.urgent), ("done", t.completed)) if on]
        rows.append(
            [
                _short_id(t.id),
                _cell(t.assignee),
                _cell(t.title),
                _cell(t.due_date),
                _cell(",".join(flags)),
                _cell(t.submission_target),
            ]
        )
    return rows


def render_task_table(tasks: Iterable[Task], *, empty_message: str = "No tasks.") -> str:
    return _format_table(
        headers=["ID", "ASSIGNEE", "TITLE", "DUE", "FLAGS", "SUBMIT TO"],
        rows=_task_rows(tasks),
        empty_message=empty_message,
    )


def render_task_list(title: str, description: str, tasks: list[Task]) -> str:
    return f"{title} ({len(tasks)})\n{description}\n\n" + render_task_table(tasks)


def render_stats(stats: TaskStats) -> str:
    pairs = [
        ("Total", stats.total),
        ("Completed", stats.completed),
        ("In progress", stats.in_progress),
        ("Urgent", stats.urgent),
        ("Due today", stats.today),
        ("Overdue", stats.overdue),
        ("Due within 7 days", stats.within_7_days),
    ]
    return "  ".join(f"{name}: {count}" for name, count in pairs) + "\n"


def render_dashboard(tasks: list[Task], today: str) -> str:
    stats = compute_stats(tasks, today)
    assignee_rows = [[name, str(count)] for name, count in sorted(stats.by_assignee.items())]
    parts = [
        f"Dashboard (today: {today})\n\n",
        render_stats(stats),
        "\nOpen tasks by assignee\n",
        _format_table(headers=["ASSIGNEE", "OPEN"], rows=assignee_rows, empty_message="No open tasks."),
        "\nRecently updated\n",
        render_task_table(recent_tasks(tasks), empty_message="No open tasks."),
        "\nUrgent\n",
        render_task_table(urgent_tasks(tasks), empty_message="No urgent tasks."),
    ]
    return "".join(parts)


def render_notices(notices: list[Notice]) -> str:
    rows = [
        [
            _short_id(n.id),
            _short_date(n.created_at),
            "important" if n.importance == "important" else "general",
            _cell(n.author),
            _cell(n.title),
        ]
        for n in notices
    ]
    return f"Notices ({len(notices)})\n\n" + _format_table(
        headers=["ID", "DATE", "IMPORTANCE", "AUTHOR", "TITLE"],
        rows=rows,
        empty_message="No notices.",
    )


def render_notice_detail(notice: Notice, comments: list[Comment]) -> str:
    marker = "[important] " if notice.importance == "important" else ""
    lines = [
        f"{marker}{notice.title}",
        f"by {notice.author} on {_short_date(notice.created_at)}  (id {notice.id})",
        "",
        notice.body or "(no content)",
        "",
        f"Comments ({len(comments)})",
    ]
    rows = [[_short_id(c.id), _short_date(c.created_at), _cell(c.author), _cell(c.body)] for c in comments]
    table = _format_table(headers=["ID", "DATE", "AUTHOR", "COMMENT"], rows=rows, empty_message="No comments.")
    return "\n".join(lines) + "\n" + table


def render_admin(users: list[User]) -> str:
    parts = [f"Users ({len(users)})\n"]
    known = {status for status, _title in _STATUS_SECTIONS}
    other = [u for u in users if u.status not in known]
    for status, title in _STATUS_SECTIONS:
        members = [u for u in users if u.status == status]
        parts.append(f"\n{title} ({len(members)})\n")
        parts.append(_user_table(members))
    if other:
        parts.append(f"\nOther ({len(other)})\n")
        parts.append(_user_table(other, with_status=True))
    return "".join(parts)


def _user_table(users: list[User], *, with_status: bool = False) -> str:
    headers = ["ID", "NAME", "EMAIL", "ROLE", "JOINED"]
    if with_status:
        headers.append("STATUS")
    rows = []
    for u in users:
        row = [_short_id(u.id), _cell(u.name), _cell(u.email), _cell(u.role), _short_date(u.joined_at)]
        if with_status:
            row.append(_cell(u.status))
        rows.append(row)
    return _format_table(headers=headers, rows=rows, empty_message="None.")


class DashboardSession:
    """Fetched task collection plus the commands that act on it.

    Switching views reuses the fetched collection. Only ``refresh`` and a
    successful mutating command fetch again.
    """

    def __init__(self, api: TeamboardApi, identity: Identity, *, today: str | None = None) -> None:
        self.api = api
        self.identity = identity
        self._pinned_today = today
        self.today = today or today_iso()
        self.tasks: list[Task] | None = None
        self.fetch_count = 0

    def refresh(self) -> list[Task]:
        if self._pinned_today is None:
            self.today = today_iso()
        self.tasks = self.api.fetch_all_tasks()
        self.fetch_count += 1
        return self.tasks

    def ensure_tasks(self) -> list[Task]:
        if self.tasks is None:
            return self.refresh()
        return self.tasks

    def render(self, view: View) -> str:
        if isinstance(view, NoticesView):
            return render_notices(self.api.list_notices())
        if isinstance(view, AdminView):
            require_admin(self.identity)
            return render_admin(self.api.list_users())

        tasks = self.ensure_tasks()
        if isinstance(view, DashboardView):
            return render_dashboard(tasks, self.today)
        if isinstance(view, AllView):
            return render_task_list("All tasks", "Every task on the board", tasks)
        if isinstance(view, FilterView):
            title, description = FILTER_TITLES[view.kind]
            return render_task_list(title, description, filter_tasks(tasks, view.kind, self.today))
        if isinstance(view, AssigneeView):
            return render_task_list(
                f"Assignee: {view.name}",
                f"Open tasks assigned to {view.name}",
                tasks_for_assignee(tasks, view.name),
            )
        raise UsageError(f"unsupported view: {view!r}")

    def resolve_task_id(self, given: str) -> str:
        return resolve_id((t.id for t in self.ensure_tasks()), given, label="task")

    def _after_mutation(self, out: dict[str, Any]) -> dict[str, Any]:
        self.refresh()
        return out

    def create_task(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._after_mutation(self.api.create_task(fields))

    def edit_task(self, task_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        if not fields:
            raise UsageError("nothing to change (pass at least one field option)")
        return self._after_mutation(self.api.update_task(self.resolve_task_id(task_id), fields))

    def complete_task(self, task_id: str, *, completed: bool = True) -> dict[str, Any]:
        return self._after_mutation(self.api.update_task(self.resolve_task_id(task_id), {"completed": completed}))

    def delete_task(self, task_id: str) -> dict[str, Any]:
        return self._after_mutation(self.api.delete_task(self.resolve_task_id(task_id)))
