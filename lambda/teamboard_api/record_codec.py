"""Translation between DynamoDB typed attribute maps and normalized records.

Readers never raise: a missing or malformed attribute degrades to the field
default. ``RecordKind.apply`` validates request values and raises
``ValidationError`` for anything that cannot be stored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable

from teamboard_api.errors import ValidationError

ANONYMOUS_AUTHOR = "익명"

IMPORTANCE_GENERAL = "general"
IMPORTANCE_IMPORTANT = "important"

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_LEAD = "lead"

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

IMPORTANCE_SYNONYMS = {
    IMPORTANCE_GENERAL: IMPORTANCE_GENERAL,
    IMPORTANCE_IMPORTANT: IMPORTANCE_IMPORTANT,
    "일반": IMPORTANCE_GENERAL,
    "중요": IMPORTANCE_IMPORTANT,
}
ROLE_SYNONYMS = {
    ROLE_USER: ROLE_USER,
    ROLE_ADMIN: ROLE_ADMIN,
    ROLE_LEAD: ROLE_LEAD,
    "사용자": ROLE_USER,
    "관리자": ROLE_ADMIN,
    "팀장": ROLE_LEAD,
}
STATUS_SYNONYMS = {
    STATUS_PENDING: STATUS_PENDING,
    STATUS_APPROVED: STATUS_APPROVED,
    STATUS_REJECTED: STATUS_REJECTED,
    "대기중": STATUS_PENDING,
    "승인됨": STATUS_APPROVED,
    "거부됨": STATUS_REJECTED,
}

_NOTICE_TITLE_RE = re.compile(r"^\[([^\]]+)\]\s*(.*)$", re.DOTALL)


@dataclass(frozen=True)
class TaskRecord:
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

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "assignee": self.assignee,
            "title": self.title,
            "dueDate": self.due_date,
            "completed": self.completed,
            "urgent": self.urgent,
            "submissionTarget": self.submission_target,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class NoticeRecord:
    id: str
    title: str = ""
    body: str = ""
    author: str = ""
    importance: str = IMPORTANCE_GENERAL
    created_at: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "author": self.author,
            "importance": self.importance,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class CommentRecord:
    id: str
    notice_id: str = ""
    author: str = ""
    body: str = ""
    created_at: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "noticeId": self.notice_id,
            "author": self.author,
            "body": self.body,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class UserRecord:
    id: str
    external_identity_id: str = ""
    name: str = ""
    email: str = ""
    picture_url: str = ""
    role: str = ROLE_USER
    status: str = STATUS_PENDING
    joined_at: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "externalIdentityId": self.external_identity_id,
            "name": self.name,
            "email": self.email,
            "pictureUrl": self.picture_url,
            "role": self.role,
            "status": self.status,
            "joinedAt": self.joined_at,
        }


def _ddb_str(item: dict[str, Any], key: str, default: str = "") -> str:
    val = item.get(key)
    if not isinstance(val, dict):
        return default
    if "S" in val and val["S"] is not None:
        return str(val["S"])
    if "N" in val and val["N"] is not None:
        return str(val["N"])
    return default


def _ddb_opt_str(item: dict[str, Any], key: str) -> str | None:
    s = _ddb_str(item, key).strip()
    return s or None


def _ddb_bool(item: dict[str, Any], key: str, default: bool = False) -> bool:
    val = item.get(key)
    if not isinstance(val, dict) or "BOOL" not in val:
        return default
    return bool(val["BOOL"])


def _s(value: str) -> dict[str, Any]:
    return {"S": str(value)}


def _opt_s(value: str | None) -> dict[str, Any]:
    if value:
        return {"S": str(value)}
    return {"NULL": True}


def _b(value: bool) -> dict[str, Any]:
    return {"BOOL": bool(value)}


def is_archived(raw: dict[str, Any]) -> bool:
    return _ddb_bool(raw, "archived", default=False)


def _canonical_or_verbatim(raw_value: str, synonyms: dict[str, str], default: str) -> str:
    v = raw_value.strip()
    if not v:
        return default
    return synonyms.get(v) or synonyms.get(v.lower()) or v


def parse_notice_title(full_title: str) -> tuple[str, str]:
    """Split a stored ``[author] title`` string into ``(author, title)``.

    Titles without the bracket prefix belong to the anonymous author. A
    bracket inside the author name breaks the split; that is accepted.
    """
    m = _NOTICE_TITLE_RE.match(full_title or "")
    if not m:
        return ANONYMOUS_AUTHOR, full_title or ""
    return m.group(1), m.group(2)


def encode_notice_title(author: str, title: str) -> str:
    return f"[{author or ANONYMOUS_AUTHOR}] {title or ''}"


def task_to_record(raw: dict[str, Any]) -> TaskRecord:
    return TaskRecord(
        id=_ddb_str(raw, "id"),
        assignee=_ddb_str(raw, "assignee"),
        title=_ddb_str(raw, "title"),
        due_date=_ddb_opt_str(raw, "dueDate"),
        completed=_ddb_bool(raw, "completed"),
        urgent=_ddb_bool(raw, "urgent"),
        submission_target=_ddb_str(raw, "submissionTarget"),
        notes=_ddb_str(raw, "notes"),
        created_at=_ddb_str(raw, "createdAt"),
        updated_at=_ddb_str(raw, "updatedAt"),
    )


def task_to_raw(rec: TaskRecord) -> dict[str, Any]:
    return {
        "id": _s(rec.id),
        "assignee": _s(rec.assignee),
        "title": _s(rec.title),
        "dueDate": _opt_s(rec.due_date),
        "completed": _b(rec.completed),
        "urgent": _b(rec.urgent),
        "submissionTarget": _s(rec.submission_target),
        "notes": _s(rec.notes),
        "createdAt": _s(rec.created_at),
        "updatedAt": _s(rec.updated_at),
    }


def notice_to_record(raw: dict[str, Any]) -> NoticeRecord:
    author, title = parse_notice_title(_ddb_str(raw, "title"))
    return NoticeRecord(
        id=_ddb_str(raw, "id"),
        title=title,
        body=_ddb_str(raw, "body"),
        author=author,
        importance=_canonical_or_verbatim(
            _ddb_str(raw, "importance"), IMPORTANCE_SYNONYMS, IMPORTANCE_GENERAL
        ),
        created_at=_ddb_str(raw, "createdAt"),
    )


def notice_to_raw(rec: NoticeRecord) -> dict[str, Any]:
    return {
        "id": _s(rec.id),
        "title": _s(encode_notice_title(rec.author, rec.title)),
        "body": _s(rec.body),
        "importance": _s(rec.importance),
        "createdAt": _s(rec.created_at),
    }


def comment_to_record(raw: dict[str, Any]) -> CommentRecord:
    return CommentRecord(
        id=_ddb_str(raw, "id"),
        notice_id=_ddb_str(raw, "noticeId"),
        author=_ddb_str(raw, "author"),
        body=_ddb_str(raw, "body"),
        created_at=_ddb_str(raw, "createdAt"),
    )


def comment_to_raw(rec: CommentRecord) -> dict[str, Any]:
    return {
        "id": _s(rec.id),
        "noticeId": _s(rec.notice_id),
        "author": _s(rec.author),
        "body": _s(rec.body),
        "createdAt": _s(rec.created_at),
    }


def user_to_record(raw: dict[str, Any]) -> UserRecord:
    return UserRecord(
        id=_ddb_str(raw, "id"),
        external_identity_id=_ddb_str(raw, "externalIdentityId"),
        name=_ddb_str(raw, "name"),
        email=_ddb_str(raw, "email"),
        picture_url=_ddb_str(raw, "pictureUrl"),
        role=_canonical_or_verbatim(_ddb_str(raw, "role"), ROLE_SYNONYMS, ROLE_USER),
        status=_canonical_or_verbatim(_ddb_str(raw, "status"), STATUS_SYNONYMS, STATUS_PENDING),
        joined_at=_ddb_str(raw, "joinedAt"),
    )


def user_to_raw(rec: UserRecord) -> dict[str, Any]:
    return {
        "id": _s(rec.id),
        "externalIdentityId": _s(rec.external_identity_id),
        "name": _s(rec.name),
        "email": _s(rec.email),
        "pictureUrl": _s(rec.picture_url),
        "role": _s(rec.role),
        "status": _s(rec.status),
        "joinedAt": _s(rec.joined_at),
    }


def _str_value(name: str, value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    return value


def _bool_value(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be true or false")
    return value


def _date_value(name: str, value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD) or null")
    s = value.strip()
    if not s:
        return None
    if len(s) > 10 and s[10] not in "T ":
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD) or null")
    try:
        return date.fromisoformat(s[:10]).isoformat()
    except ValueError as e:
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD) or null") from e


def _enum_value(synonyms: dict[str, str]) -> Callable[[str, Any], str]:
    def coerce(name: str, value: Any) -> str:
        key = value.strip() if isinstance(value, str) else ""
        canonical = synonyms.get(key) or synonyms.get(key.lower())
        if not canonical:
            allowed = "|".join(sorted(set(synonyms.values())))
            raise ValidationError(f"{name} must be one of {allowed}")
        return canonical

    return coerce


_FieldTable = dict[str, tuple[str, Callable[[str, Any], Any]]]

TASK_FIELDS: _FieldTable = {
    "assignee": ("assignee", _str_value),
    "title": ("title", _str_value),
    "dueDate": ("due_date", _date_value),
    "completed": ("completed", _bool_value),
    "urgent": ("urgent", _bool_value),
    "submissionTarget": ("submission_target", _str_value),
    "notes": ("notes", _str_value),
}

NOTICE_FIELDS: _FieldTable = {
    "title": ("title", _str_value),
    "body": ("body", _str_value),
    "author": ("author", _str_value),
    "importance": ("importance", _enum_value(IMPORTANCE_SYNONYMS)),
}

COMMENT_FIELDS: _FieldTable = {
    "noticeId": ("notice_id", _str_value),
    "author": ("author", _str_value),
    "body": ("body", _str_value),
}

USER_FIELDS: _FieldTable = {
    "externalIdentityId": ("external_identity_id", _str_value),
    "name": ("name", _str_value),
    "email": ("email", _str_value),
    "pictureUrl": ("picture_url", _str_value),
    "role": ("role", _enum_value(ROLE_SYNONYMS)),
    "status": ("status", _enum_value(STATUS_SYNONYMS)),
}


@dataclass(frozen=True)
class RecordKind:
    name: str
    record_type: type
    fields: _FieldTable
    to_record: Callable[[dict[str, Any]], Any]
    to_raw: Callable[[Any], dict[str, Any]]

    def apply(self, rec: Any, fields: dict[str, Any]) -> Any:
        changes: dict[str, Any] = {}
        for key, value in fields.items():
            entry = self.fields.get(key)
            if entry is None:
                continue
            attr, coerce = entry
            changes[attr] = coerce(key, value)
        return replace(rec, **changes) if changes else rec


TASK = RecordKind("task", TaskRecord, TASK_FIELDS, task_to_record, task_to_raw)
NOTICE = RecordKind("notice", NoticeRecord, NOTICE_FIELDS, notice_to_record, notice_to_raw)
COMMENT = RecordKind("comment", CommentRecord, COMMENT_FIELDS, comment_to_record, comment_to_raw)
USER = RecordKind("user", UserRecord, USER_FIELDS, user_to_record, user_to_raw)

_KINDS_BY_TYPE = {k.record_type: k for k in (TASK, NOTICE, COMMENT, USER)}


def to_record(kind: RecordKind, raw: dict[str, Any]) -> Any:
    return kind.to_record(raw if isinstance(raw, dict) else {})


def to_raw_properties(rec: Any) -> dict[str, Any]:
    kind = _KINDS_BY_TYPE.get(type(rec))
    if kind is None:
        raise TypeError(f"unsupported record type: {type(rec).__name__}")
    return kind.to_raw(rec)
