from __future__ import annotations

import json
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from .cli_shared import OpError
from .records import Comment
from .records import Notice
from .records import Task
from .records import User
from .records import task_from_page

# Upper bound on GET /database pages followed by fetch_all_tasks.
_MAX_TASK_PAGES = 1000


def _http_request(
    *,
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None = None,
    timeout_seconds: int = 30,
) -> tuple[int, dict[str, str], bytes]:
    req = Request(url, data=body, method=str(method).upper())
    for k, v in headers.items():
        req.add_header(k, v)
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            status = getattr(resp, "status", 200)
            hdrs = {k.lower(): v for k, v in dict(resp.headers).items()}
            data = resp.read()
            return int(status), hdrs, data
    except HTTPError as e:
        hdrs = {k.lower(): v for k, v in dict(e.headers).items()}
        data = e.read() if hasattr(e, "read") else b""
        return int(getattr(e, "code", 0) or 0), hdrs, data
    except URLError as e:
        raise OpError(f"http request failed: {e}") from e


class TeamboardApi:
    def __init__(self, base_url: str, *, timeout_seconds: int = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def request(
        self,
        method: str,
        path: str,
        *,
        query: dict[str, Any] | None = None,
        body_obj: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        p = path if path.startswith("/") else f"/{path}"
        query_clean = {
            k: str(v)
            for k, v in (query or {}).items()
            if v is not None and str(v).strip() != ""
        }
        url = f"{self.base_url}{p}"
        if query_clean:
            url += f"?{urlencode(query_clean)}"

        body_bytes = None
        headers = {"accept": "application/json"}
        if body_obj is not None:
            body_bytes = json.dumps(body_obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
            headers["content-type"] = "application/json"

        status, _hdrs, data = _http_request(
            method=method,
            url=url,
            headers=headers,
            body=body_bytes,
            timeout_seconds=self.timeout_seconds,
        )
        text = data.decode("utf-8", errors="replace")
        parsed: Any
        try:
            parsed = json.loads(text) if text else {}
        except ValueError:
            parsed = {"raw": text}

        if status < 200 or status >= 300:
            if isinstance(parsed, dict):
                msg = str(parsed.get("error") or parsed.get("message") or text).strip()
            else:
                msg = str(parsed)
            raise OpError(
                f"request failed: status={status} method={method} path={p} message={msg}",
                status=status,
            )

        if isinstance(parsed, dict):
            return parsed
        return {"result": parsed}

    # tasks

    def list_database_page(self, *, limit: int | None = None, cursor: str | None = None) -> dict[str, Any]:
        return self.request("GET", "/database", query={"limit": limit, "nextToken": cursor})

    def fetch_all_tasks(self) -> list[Task]:
        tasks: list[Task] = []
        cursor: str | None = None
        for _ in range(_MAX_TASK_PAGES):
            page = self.list_database_page(cursor=cursor)
            for entry in page.get("results") or []:
                if isinstance(entry, dict):
                    tasks.append(task_from_page(entry))
            cursor = str(page.get("next_cursor") or "").strip() or None
            if not page.get("has_more") or not cursor:
                return tasks
        raise OpError(f"task listing did not finish within {_MAX_TASK_PAGES} pages")

    def create_task(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self.request("POST", "/tasks", body_obj=fields)

    def update_task(self, task_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        return self.request("PATCH", f"/tasks/{quote(task_id, safe='')}", body_obj=fields)

    def delete_task(self, task_id: str) -> dict[str, Any]:
        return self.request("DELETE", f"/tasks/{quote(task_id, safe='')}")

    # notices and comments

    def list_notices(self) -> list[Notice]:
        out = self.request("GET", "/notices")
        return [Notice.from_json(n) for n in out.get("notices") or [] if isinstance(n, dict)]

    def create_notice(self, fields: dict[str, Any]) -> Notice:
        out = self.request("POST", "/notices", body_obj=fields)
        return Notice.from_json(out.get("notice") or {})

    def update_notice(self, notice_id: str, fields: dict[str, Any]) -> Notice:
        out = self.request("PATCH", f"/notices/{quote(notice_id, safe='')}", body_obj=fields)
        return Notice.from_json(out.get("notice") or {})

    def delete_notice(self, notice_id: str) -> dict[str, Any]:
        return self.request("DELETE", f"/notices/{quote(notice_id, safe='')}")

    def list_comments(self, notice_id: str) -> list[Comment]:
        out = self.request("GET", f"/comments/{quote(notice_id, safe='')}")
        return [Comment.from_json(c) for c in out.get("comments") or [] if isinstance(c, dict)]

    def create_comment(self, *, notice_id: str, body: str, author: str) -> Comment:
        out = self.request("POST", "/comments", body_obj={"noticeId": notice_id, "body": body, "author": author})
        return Comment.from_json(out.get("comment") or {})

    def delete_comment(self, comment_id: str) -> dict[str, Any]:
        return self.request("DELETE", f"/comments/{quote(comment_id, safe='')}")

    # users

    def register_user(self, profile: dict[str, Any]) -> User:
        out = self.request("POST", "/users/register", body_obj=profile)
        return User.from_json(out.get("user") or {})

    def list_users(self) -> list[User]:
        out = self.request("GET", "/users")
        return [User.from_json(u) for u in out.get("users") or [] if isinstance(u, dict)]

    def update_user_status(self, user_id: str, *, status: str | None = None, role: str | None = None) -> User:
        body: dict[str, Any] = {}
        if status:
            body["status"] = status
        if role:
            body["role"] = role
        out = self.request("PATCH", f"/users/{quote(user_id, safe='')}/status", body_obj=body)
        return User.from_json(out.get("user") or {})
