from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .cli_shared import UsageError
from .task_views import FilterKind
from .task_views import parse_filter_kind


@dataclass(frozen=True)
class DashboardView:
    pass


@dataclass(frozen=True)
class AllView:
    pass


@dataclass(frozen=True)
class NoticesView:
    pass


@dataclass(frozen=True)
class AdminView:
    pass


@dataclass(frozen=True)
class FilterView:
    kind: FilterKind


@dataclass(frozen=True)
class AssigneeView:
    name: str


View = Union[DashboardView, AllView, NoticesView, AdminView, FilterView, AssigneeView]

_SIMPLE_VIEWS: dict[str, View] = {
    "dashboard": DashboardView(),
    "all": AllView(),
    "notices": NoticesView(),
    "admin": AdminView(),
}

VIEW_NAMES = ["dashboard", "all", "notices", "admin", *[k.value for k in FilterKind], "assignee:<name>"]


def parse_view(raw: str | None) -> View:
    text = (raw or "").strip()
    if not text:
        return DashboardView()
    if text.lower().startswith("assignee:"):
        name = text.split(":", 1)[1].strip()
        if not name:
            raise UsageError("assignee view needs a name: assignee:<name>")
        return AssigneeView(name)
    simple = _SIMPLE_VIEWS.get(text.lower())
    if simple is not None:
        return simple
    kind = parse_filter_kind(text)
    if kind is not None:
        return FilterView(kind)
    raise UsageError(f"unknown view {text!r} (choose one of: {', '.join(VIEW_NAMES)})")


def view_selector(view: View) -> str:
    if isinstance(view, FilterView):
        return view.kind.value
    if isinstance(view, AssigneeView):
        return f"assignee:{view.name}"
    for name, simple in _SIMPLE_VIEWS.items():
        if simple == view:
            return name
    raise ValueError(f"unknown view: {view!r}")


def needs_tasks(view: View) -> bool:
    return not isinstance(view, (NoticesView, AdminView))
