from __future__ import annotations

import base64
import json
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from botocore.exceptions import ClientError
from teamboard_api.errors import MethodNotAllowedError
from teamboard_api.errors import NotFoundError
from teamboard_api.errors import TeamboardError
from teamboard_api.errors import UpstreamError
from teamboard_api.errors import ValidationError


SCHEMA_VERSION = os.environ.get("TEAMBOARD_SCHEMA_VERSION", "2024-06-01")

DEFAULT_PAGE_LIMIT = 100
MAX_PAGE_LIMIT = 100

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, PATCH, DELETE, OPTIONS",
}

# Prefixes the same handlers are mounted under.
_MOUNT_PREFIXES = (("api",), (".netlify", "functions"))

RouteResult = tuple[int, dict[str, Any]]
Route = Callable[[dict[str, Any], str, str, list[str]], RouteResult]


def now_iso() -> str:
    # Fixed-format UTC timestamp for lexicographic ordering.
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def aws_region() -> str:
    return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or "us-east-1"


def _response(status_code: int, body: dict[str, Any] | None) -> dict[str, Any]:
    headers = {
        "content-type": "application/json",
        "cache-control": "no-store",
    }
    headers.update(CORS_HEADERS)
    return {
        "statusCode": int(status_code),
        "headers": headers,
        "body": "" if body is None else json.dumps(body, ensure_ascii=False),
    }


def _error(status_code: int, code: str, message: str, request_id: str) -> dict[str, Any]:
    return _response(
        status_code,
        {"error": message, "errorCode": code, "requestId": request_id},
    )


def request_id(event: dict[str, Any]) -> str:
    rc = event.get("requestContext") or {}
    if isinstance(rc, dict):
        rid = str(rc.get("requestId") or "").strip()
        if rid:
            return rid
    return str(uuid.uuid4())


def http_method(event: dict[str, Any]) -> str:
    return str(event.get("httpMethod") or "").strip().upper()


def parse_body(event: dict[str, Any]) -> dict[str, Any]:
    raw = event.get("body")
    if raw is None:
        return {}
    if not isinstance(raw, str):
        raise ValidationError("request body must be a JSON object")
    if bool(event.get("isBase64Encoded")):
        try:
            raw = base64.b64decode(raw.encode("utf-8")).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise ValidationError("request body base64 decode failed") from e
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError as e:
        raise ValidationError("request body must be valid JSON") from e
    if not isinstance(parsed, dict):
        raise ValidationError("request body must be a JSON object")
    return parsed


def query_param(event: dict[str, Any], key: str) -> str:
    qs = event.get("queryStringParameters") or {}
    if not isinstance(qs, dict):
        return ""
    val = qs.get(key)
    return str(val).strip() if val is not None else ""


def decode_next_token(next_token: str) -> dict[str, Any] | None:
    s = (next_token or "").strip()
    if not s:
        return None
    try:
        padded = s + ("=" * (-len(s) % 4))
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        parsed = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeError) as e:
        raise ValidationError("invalid nextToken") from e
    if not isinstance(parsed, dict):
        raise ValidationError("invalid nextToken")
    return parsed


def encode_next_token(key: dict[str, Any] | None) -> str | None:
    if not key:
        return None
    raw = json.dumps(key, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def page_limit(raw: str) -> int:
    if not raw:
        return DEFAULT_PAGE_LIMIT
    try:
        n = int(raw)
    except ValueError:
        return DEFAULT_PAGE_LIMIT
    if n < 1:
        return DEFAULT_PAGE_LIMIT
    return min(n, MAX_PAGE_LIMIT)


def path_segments(event: dict[str, Any]) -> list[str]:
    segments = [s for s in str(event.get("path") or "").split("/") if s]
    for prefix in _MOUNT_PREFIXES:
        if tuple(segments[: len(prefix)]) == prefix:
            return segments[len(prefix):]
    return segments


def route_segments(event: dict[str, Any], resources: tuple[str, ...]) -> tuple[str, list[str]]:
    """Return the matched resource name and the path segments after it.

    ``/api/tasks/abc``, ``/.netlify/functions/tasks/abc`` and ``/tasks/abc``
    all resolve to ``("tasks", ["abc"])``.
    """
    segments = path_segments(event)
    for idx, seg in enumerate(segments):
        if seg in resources:
            return seg, segments[idx + 1:]
    raise NotFoundError(f"route not found: {http_method(event)} {event.get('path') or '/'}")


def method_not_allowed() -> MethodNotAllowedError:
    return MethodNotAllowedError("Method not allowed")


def run_handler(event: dict[str, Any], *, name: str, resources: tuple[str, ...], route: Route) -> dict[str, Any]:
    start = time.time()
    rid = request_id(event)
    method = http_method(event)

    wide_event: dict[str, Any] = {
        "event": name,
        "schema_version": SCHEMA_VERSION,
        "request_id": rid,
        "ts": now_iso(),
        "method": method,
        "path": str(event.get("path") or ""),
    }

    try:
        if method == "OPTIONS":
            wide_event["outcome"] = "preflight"
            wide_event["status_code"] = 200
            return _response(200, None)

        resource, rest = route_segments(event, resources)
        status_code, body = route(event, method, resource, rest)
        wide_event["outcome"] = "success"
        wide_event["status_code"] = status_code
        return _response(status_code, body)
    except ClientError as e:
        err = UpstreamError(str(e))
        wide_event["outcome"] = "error"
        wide_event["status_code"] = err.status_code
        wide_event["error"] = {"type": type(e).__name__, "message": str(e)}
        return _error(err.status_code, err.error_code, err.message, rid)
    except TeamboardError as e:
        wide_event["outcome"] = "rejected" if e.status_code < 500 else "error"
        wide_event["status_code"] = e.status_code
        wide_event["error"] = {"type": type(e).__name__, "message": e.message}
        return _error(e.status_code, e.error_code, e.message, rid)
    except Exception as e:
        wide_event["outcome"] = "error"
        wide_event["status_code"] = 500
        wide_event["error"] = {"type": type(e).__name__, "message": str(e)}
        return _error(500, "INTERNAL_ERROR", str(e), rid)
    finally:
        wide_event["duration_ms"] = int((time.time() - start) * 1000)
        print(json.dumps(wide_event, separators=(",", ":"), sort_keys=True, ensure_ascii=False))
