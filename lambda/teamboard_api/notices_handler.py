from __future__ import annotations

import os
import threading
from typing import Any

import boto3
from teamboard_api.errors import ValidationError
from teamboard_api.field_aliases import NOTICE_ALIASES
from teamboard_api.field_aliases import canonical_fields
from teamboard_api.http_common import RouteResult
from teamboard_api.http_common import aws_region
from teamboard_api.http_common import method_not_allowed
from teamboard_api.http_common import parse_body
from teamboard_api.http_common import run_handler
from teamboard_api.record_codec import NOTICE
from teamboard_api.record_store import RecordStore


NOTICES_TABLE_NAME = os.environ.get("TEAMBOARD_NOTICES_TABLE", "")

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
    return RecordStore(NOTICE, NOTICES_TABLE_NAME, _ddb)


def _notice_id(rest: list[str]) -> str:
    if len(rest) != 1 or not rest[0].strip():
        raise ValidationError("notice id is required in the path: /notices/{id}")
    return rest[0].strip()


def _route(event: dict[str, Any], method: str, _resource: str, rest: list[str]) -> RouteResult:
    if method == "GET":
        if rest:
            notice = _store().get(_notice_id(rest))
            return 200, {"notice": notice.to_json()}
        notices = _store().list(sort_key="created_at", descending=True)
        return 200, {"notices": [n.to_json() for n in notices]}

    if method == "POST" and not rest:
        fields = canonical_fields(parse_body(event), NOTICE_ALIASES)
        notice = _store().create(fields)
        return 201, {"success": True, "id": notice.id, "notice": notice.to_json()}

    if method == "PATCH":
        notice_id = _notice_id(rest)
        fields = canonical_fields(parse_body(event), NOTICE_ALIASES)
        notice = _store().update(notice_id, fields)
        return 200, {"success": True, "notice": notice.to_json()}

    if method == "DELETE":
        notice = _store().archive(_notice_id(rest))
        return 200, {"success": True, "id": notice.id}

    raise method_not_allowed()


def handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    return run_handler(event, name="teamboard_notices", resources=("notices",), route=_route)
