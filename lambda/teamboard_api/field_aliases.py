"""Request-body key translation.

Each record kind has one canonical request schema. Clients written against
older payloads send English legacy keys or the original Korean property
names; the tables below map those onto the canonical key. Aliases are listed
in precedence order, so when a body carries several spellings of one field
the earliest wins (English before Korean).
"""

from __future__ import annotations

from typing import Any

AliasTable = dict[str, tuple[str, ...]]

TASK_ALIASES: AliasTable = {
    "assignee": ("assignee", "담당자"),
    "title": ("title", "taskName", "과제명"),
    "dueDate": ("dueDate", "deadline", "마감일"),
    "completed": ("completed", "완료"),
    "urgent": ("urgent", "긴급"),
    "submissionTarget": ("submissionTarget", "submissionTo", "제출처"),
    "notes": ("notes", "비고"),
}

NOTICE_ALIASES: AliasTable = {
    "title": ("title", "제목"),
    "body": ("body", "content", "내용"),
    "author": ("author", "작성자"),
    "importance": ("importance", "type", "선택"),
}

COMMENT_ALIASES: AliasTable = {
    "noticeId": ("noticeId", "공지사항 ID"),
    "author": ("author", "작성자"),
    "body": ("body", "content", "내용"),
}

USER_ALIASES: AliasTable = {
    "externalIdentityId": ("externalIdentityId", "googleId", "Google ID"),
    "name": ("name", "이름"),
    "email": ("email", "이메일"),
    "pictureUrl": ("pictureUrl", "profilePicture", "picture", "프로필 사진"),
    "role": ("role", "역할"),
    "status": ("status", "상태"),
}

# PATCH /users/{id}/status only touches admission fields.
USER_STATUS_ALIASES: AliasTable = {
    "status": USER_ALIASES["status"],
    "role": USER_ALIASES["role"],
}


def canonical_fields(body: dict[str, Any], table: AliasTable) -> dict[str, Any]:
    """Translate ``body`` into canonical keys.

    Only keys present in the body appear in the result, so an explicit
    ``null`` survives as ``None`` while an absent key stays absent. Unknown
    keys are dropped.
    """
    out: dict[str, Any] = {}
    for canonical, aliases in table.items():
        for alias in aliases:
            if alias in body:
                out[canonical] = body[alias]
                break
    return out
