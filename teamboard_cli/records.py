"""Client-side records decoded from API responses.

Tasks arrive as raw store pages from ``GET /database`` (typed attribute maps)
and are decoded here; notices, comments and users arrive already normalized.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _attr_str(props: dict[str, Any], key: str) -> str:
    val = props.get(key)
    if not isinstance(val, dict):
        return ""
    if isinstance(val.get("S"), str):
        return val["S"]
    if val.get("N") is not None:
        return str(val["N"])
    return ""


def _attr_bool(props: dict[str, Any], key: str) -> bool:
    val = props.get(key)
    if not isinstance(val, dict) or "BOOL" not in val:
        return False
    return bool(val["BOOL"])


def _str(obj: dict[str, Any], key: str, default: str = "") -> str:
    val = obj.get(key)
    if val is None:
        return default
    return str(val)


@dataclass(frozen=True)
class Task:
    id: str
    assignee: str = ""
    title: str = ""
    due_date: str | None = None
    completed: bool = False
    urgent: bool = False
    submission_target: str = ""
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""


def task_from_page(entry: dict[str, Any]) -> Task:
    props = entry.get("properties")
    if not isinstance(props, dict):
        props = {}
    due = _attr_str(props, "dueDate").strip()
    return Task(
        id=_str(entry, "id") or _attr_str(props, "id"),
        assignee=_attr_str(props, "assignee"),
        title=_attr_str(props, "title"),
        due_date=due or None,
        completed=_attr_bool(props, "completed"),
        urgent=_attr_bool(props, "urgent"),
        submission_target=_attr_str(props, "submissionTarget"),
        notes=_attr_str(props, "notes"),
        created_at=_str(entry, "created_time") or _attr_str(props, "createdAt"),
        updated_at=_str(entry, "last_edited_time") or _attr_str(props, "updatedAt"),
    )


@dataclass(frozen=True)
class Notice:
    id: str
    title: str = ""
    body: str = ""
    author: str = ""
    importance: str = "general"
    created_at: str = ""

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "Notice":
        return cls(
            id=_str(obj, "id"),
            title=_str(obj, "title"),
            body=_str(obj, "body"),
            author=_str(obj, "author"),
            importance=_str(obj, "importance", "general"),
            created_at=_str(obj, "createdAt"),
        )


@dataclass(frozen=True)
class Comment:
    id: str
    notice_id: str = ""
    author: str = ""
    body: str = ""
    created_at: str = ""

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "Comment":
        return cls(
            id=_str(obj, "id"),
            notice_id=_str(obj, "noticeId"),
            author=_str(obj, "author"),
            body=_str(obj, "body"),
            created_at=_str(obj, "createdAt"),
        )


@dataclass(frozen=True)
class User:
    id: str
    external_identity_id: str = ""
    name: str = ""
    email: str = ""
    picture_url: str = ""
    role: str = "user"
    status: str = "pending"
    joined_at: str = ""

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "User":
        return cls(
            id=_str(obj, "id"),
            external_identity_id=_str(obj, "externalIdentityId"),
            name=_str(obj, "name"),
            email=_str(obj, "email"),
            picture_url=_str(obj, "pictureUrl"),
            role=_str(obj, "role", "user"),
            status=_str(obj, "status", "pending"),
            joined_at=_str(obj, "joinedAt"),
        )
