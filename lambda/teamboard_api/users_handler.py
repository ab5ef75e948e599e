from __future__ import annotations

import os
import threading
from typing import Any

import boto3
from teamboard_api.errors import NotFoundError
from teamboard_api.errors import ValidationError
from teamboard_api.field_aliases import USER_ALIASES
from teamboard_api.field_aliases import USER_STATUS_ALIASES
from teamboard_api.field_aliases import canonical_fields
from teamboard_api.http_common import RouteResult
from teamboard_api.http_common import aws_region
from teamboard_api.http_common import method_not_allowed
from teamboard_api.http_common import parse_body
from teamboard_api.http_common import run_handler
from teamboard_api.record_codec import USER
from teamboard_api.record_store import RecordStore


USERS_TABLE_NAME = os.environ.get("TEAMBOARD_USERS_TABLE", "")

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
    return RecordStore(USER, USERS_TABLE_NAME, _ddb)


def _register(event: dict[str, Any]) -> RouteResult:
    fields = canonical_fields(parse_body(event), USER_ALIASES)
    user, created = _store().register_user(fields)
    if created:
        return 201, {"success": True, "message": "User registered", "user": user.to_json()}
    return 200, {"success": True, "message": "User already exists", "user": user.to_json()}


def _update_status(event: dict[str, Any], user_id: str) -> RouteResult:
    fields = canonical_fields(parse_body(event), USER_STATUS_ALIASES)
    if not fields:
        raise ValidationError("status or role is required")
    user = _store().update(user_id, fields)
    return 200, {"success": True, "user": user.to_json()}


def _route(event: dict[str, Any], method: str, resource: str, rest: list[str]) -> RouteResult:
    # /register and /users/register
    if (resource == "register" and not rest) or (resource == "users" and rest == ["register"]):
        if method != "POST":
            raise method_not_allowed()
        return _register(event)

    if resource == "users" and not rest:
        if method != "GET":
            raise method_not_allowed()
        users = _store().list(sort_key="joined_at", descending=True)
        return 200, {"users": [u.to_json() for u in users]}

    if resource == "users" and len(rest) == 2 and rest[1] == "status":
        if method != "PATCH":
            raise method_not_allowed()
        return _update_status(event, rest[0])

    raise NotFoundError(f"route not found: {method} /{resource}/" + "/".join(rest))


def handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    return run_handler(event, name="teamboard_users", resources=("users", "register"), route=_route)
