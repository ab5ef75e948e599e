from __future__ import annotations

import os
import threading
from typing import Any

import boto3
from teamboard_api.errors import ValidationError
from teamboard_api.field_aliases import COMMENT_ALIASES
from teamboard_api.field_aliases import canonical_fields
from teamboard_api.http_common import RouteResult
from teamboard_api.http_common import aws_region
from teamboard_api.http_common import method_not_allowed
from teamboard_api.http_common import parse_body
from teamboard_api.http_common import query_param
from teamboard_api.http_common import run_handler
from teamboard_api.record_codec import COMMENT
from teamboard_api.record_store import RecordStore


COMMENTS_TABLE_NAME = os.environ.get("TEAMBOARD_COMMENTS_TABLE", "")

_ddb_client = None
_ddb_lock = threading.Lock()


def _ddb():
    global _ddb_client
    # Handlers run concurrently in the local server threadpool.
    with _ddb_lock:
        if _ddb_client is None:
            _ddb_client = boto3.client("dynamodb", region_name=aws_region())
    return _ddb_client


def _store() -> RecordStore:
    return RecordStore(COMMENT, COMMENTS_TABLE_NAME, _ddb)


def _route(event: dict[str, Any], method: str, _resource: str, rest: list[str]) -> RouteResult:
    if method == "GET":
        notice_id = rest[0].strip() if len(rest) == 1 else query_param(event, "noticeId")
        if not notice_id:
            raise ValidationError("notice id is required: /comments/{noticeId}")
        comments = _store().list({"notice_id": notice_id}, sort_key="created_at")
        return 200, {"comments": [c.to_json() for c in comments]}

    if method == "POST" and not rest:
        fields = canonical_fields(parse_body(event), COMMENT_ALIASES)
        notice_id = fields.get("noticeId")
        if not isinstance(notice_id, str) or not notice_id.strip():
            raise ValidationError("noticeId is required")
        fields["noticeId"] = notice_id.strip()
        comment = _store().create(fields)
        return 201, {"success": True, "id": comment.id, "comment": comment.to_json()}

    if method == "DELETE":
        if len(rest) != 1 or not rest[0].strip():
            raise ValidationError("comment id is required in the path: /comments/{id}")
        comment = _store().archive(rest[0].strip())
        return 200, {"success": True, "id": comment.id}

    raise method_not_allowed()


def handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    return run_handler(event, name="teamboard_comments", resources=("comments",), route=_route)
