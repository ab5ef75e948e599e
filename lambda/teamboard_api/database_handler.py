from __future__ import annotations

import os
import threading
from typing import Any

import boto3
from teamboard_api.errors import ValidationError
from teamboard_api.http_common import RouteResult
from teamboard_api.http_common import aws_region
from teamboard_api.http_common import decode_next_token
from teamboard_api.http_common import encode_next_token
from teamboard_api.http_common import method_not_allowed
from teamboard_api.http_common import page_limit
from teamboard_api.http_common import query_param
from teamboard_api.http_common import run_handler
from teamboard_api.record_codec import TASK
from teamboard_api.record_store import RecordStore


TASKS_TABLE_NAME = os.environ.get("TEAMBOARD_TASKS_TABLE", "")

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
    return RecordStore(TASK, TASKS_TABLE_NAME, _ddb)


def _attr_s(item: dict[str, Any], key: str) -> str:
    val = item.get(key)
    if isinstance(val, dict) and isinstance(val.get("S"), str):
        return val["S"]
    return ""


def _raw_page_entry(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": _attr_s(item, "id"),
        "created_time": _attr_s(item, "createdAt"),
        "last_edited_time": _attr_s(item, "updatedAt"),
        "properties": item,
    }


def _route(event: dict[str, Any], method: str, _resource: str, rest: list[str]) -> RouteResult:
    if method != "GET":
        raise method_not_allowed()
    if rest:
        raise ValidationError("GET /database takes no path parameters")

    limit = page_limit(query_param(event, "limit"))
    start_key = decode_next_token(query_param(event, "nextToken") or query_param(event, "start_cursor"))
    items, last_key = _store().scan_page(limit, start_key)
    next_cursor = encode_next_token(last_key)
    return 200, {
        "results": [_raw_page_entry(i) for i in items],
        "next_cursor": next_cursor,
        "has_more": bool(next_cursor),
    }


def handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    return run_handler(event, name="teamboard_database", resources=("database",), route=_route)
