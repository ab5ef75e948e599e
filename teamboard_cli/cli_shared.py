from __future__ import annotations

import base64
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class TeamboardCliError(Exception):
    pass


class UsageError(TeamboardCliError):
    pass


class OpError(TeamboardCliError):
    def __init__(self, message: str, *, status: int = 0) -> None:
        super().__init__(message)
        self.status = status


class AdmissionBlocked(TeamboardCliError):
    """Raised when the signed-in identity is not approved."""

    def __init__(self, screen: str, *, status: str) -> None:
        super().__init__(screen)
        self.screen = screen
        self.status = status


TEAMBOARD_API_BASE_URL = "TEAMBOARD_API_BASE_URL"
TEAMBOARD_SESSION_FILE = "TEAMBOARD_SESSION_FILE"
TEAMBOARD_CLIENT_ID = "TEAMBOARD_CLIENT_ID"
TEAMBOARD_ID_TOKEN = "TEAMBOARD_ID_TOKEN"

DEFAULT_API_BASE_URL = "http://localhost:8001/api"
DEFAULT_SESSION_FILE = ".teamboard/session.json"


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


@dataclass(frozen=True)
class GlobalOpts:
    api_base_url: str
    session_file: str
    client_id: str = ""
    json_output: bool = False


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def _require_str(val: str | None, name: str, *, hint: str) -> str:
    v = (val or "").strip()
    if not v:
        raise UsageError(f"missing {name} ({hint})")
    return v


def _print_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False) + "\n")
    else:
        sys.stdout.write(json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False) + "\n")


def _jwt_payload(token: str) -> dict[str, Any]:
    parts = (token or "").split(".")
    if len(parts) < 2:
        raise UsageError("invalid identity token: expected at least 2 dot-separated parts")
    payload_b64 = parts[1]
    payload_b64 += "=" * (-len(payload_b64) % 4)
    try:
        raw = base64.urlsafe_b64decode(payload_b64.encode("utf-8"))
        val = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise UsageError(f"invalid identity token payload: {e}") from e
    if not isinstance(val, dict):
        raise UsageError("invalid identity token payload: expected JSON object")
    return val


def _write_secure_json(*, path: Path, obj: dict[str, Any]) -> None:
    _write_secure_text(path=path, text=json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False) + "\n")


def _write_secure_text(*, path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    try:
        os.chmod(path, 0o600)
    except OSError as e:
        raise OpError(f"failed to apply 0600 permissions to {path}: {e}") from e


def _cell(value: Any) -> str:
    text = str(value if value is not None else "").strip()
    if not text:
        return "-"
    return text


def _format_table(*, headers: list[str], rows: list[list[str]], empty_message: str) -> str:
    if not rows:
        return f"{empty_message}\n"
    widths: list[int] = [len(h) for h in headers]
    for row in rows:
        for i, val in enumerate(row):
            widths[i] = max(widths[i], len(val))
    lines = [
        "  ".join(h.ljust(widths[i]) for i, h in enumerate(headers)).rstrip(),
        "  ".join("-" * widths[i] for i in range(len(headers))),
    ]
    for row in rows:
        lines.append("  ".join(row[i].ljust(widths[i]) for i in range(len(headers))).rstrip())
    return "\n".join(lines) + "\n"
