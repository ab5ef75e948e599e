"""Signed-in identity and the admission gate.

The identity lives in a JSON session file between runs. Only an ``approved``
status is admitted; anything else (including values this client does not
recognize) renders the blocking status screen.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

from .api_client import TeamboardApi
from .cli_shared import AdmissionBlocked
from .cli_shared import OpError
from .cli_shared import UsageError
from .cli_shared import _jwt_payload
from .cli_shared import _write_secure_json
from .records import User

SESSION_KIND = "teamboard.session.v1"

ROLE_ADMIN = "admin"


class AdmissionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Identity:
    user_id: str
    external_identity_id: str
    name: str
    email: str
    picture_url: str = ""
    role: str = "user"
    status: str = AdmissionState.PENDING.value

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "Identity":
        return cls(
            user_id=str(obj.get("user_id") or ""),
            external_identity_id=str(obj.get("external_identity_id") or ""),
            name=str(obj.get("name") or ""),
            email=str(obj.get("email") or ""),
            picture_url=str(obj.get("picture_url") or ""),
            role=str(obj.get("role") or "user"),
            status=str(obj.get("status") or AdmissionState.PENDING.value),
        )

    def with_user(self, user: User) -> "Identity":
        return replace(self, user_id=user.id or self.user_id, role=user.role, status=user.status)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def admission_state(identity: Identity | None) -> AdmissionState | str:
    if identity is None:
        return AdmissionState.UNAUTHENTICATED
    try:
        return AdmissionState(identity.status)
    except ValueError:
        return identity.status


class SessionContext:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.identity: Identity | None = None

    def load(self) -> Identity | None:
        if not self.path.exists():
            self.identity = None
            return None
        try:
            doc = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise OpError(f"failed to read session file {self.path}: {e}") from e
        ident = doc.get("identity") if isinstance(doc, dict) else None
        self.identity = Identity.from_json(ident) if isinstance(ident, dict) else None
        return self.identity

    def save(self, identity: Identity) -> None:
        _write_secure_json(path=self.path, obj={"kind": SESSION_KIND, "identity": asdict(identity)})
        self.identity = identity

    def clear(self) -> bool:
        self.identity = None
        if self.path.exists():
            self.path.unlink()
            return True
        return False


def identity_from_token(id_token: str, *, client_id: str = "") -> Identity:
    claims = _jwt_payload(id_token)
    if client_id:
        aud = claims.get("aud")
        audiences = aud if isinstance(aud, list) else [aud]
        if client_id not in audiences:
            raise UsageError("identity token was issued for a different client (aud mismatch)")
    email = str(claims.get("email") or "").strip()
    if not email:
        raise UsageError("identity token has no email claim")
    return Identity(
        user_id="",
        external_identity_id=str(claims.get("sub") or ""),
        name=str(claims.get("name") or email),
        email=email,
        picture_url=str(claims.get("picture") or ""),
    )


def _profile(identity: Identity) -> dict[str, Any]:
    return {
        "externalIdentityId": identity.external_identity_id,
        "name": identity.name,
        "email": identity.email,
        "pictureUrl": identity.picture_url,
    }


def _register(api: TeamboardApi, identity: Identity) -> Identity:
    try:
        return identity.with_user(api.register_user(_profile(identity)))
    except OpError as register_error:
        try:
            users = api.list_users()
        except OpError as e:
            raise OpError(f"sign-in failed: {register_error}; user lookup also failed: {e}") from e
    needle = identity.email.strip().lower()
    for user in users:
        if user.email.strip().lower() == needle:
            return identity.with_user(user)
    return replace(identity, status=AdmissionState.PENDING.value)


def sign_in(api: TeamboardApi, ctx: SessionContext, id_token: str, *, client_id: str = "") -> Identity:
    identity = _register(api, identity_from_token(id_token, client_id=client_id))
    ctx.save(identity)
    return identity


def refresh_status(api: TeamboardApi, ctx: SessionContext) -> Identity:
    current = ctx.identity or ctx.load()
    if current is None:
        raise UsageError("not signed in (run: teamboard signin --id-token <token>)")
    identity = _register(api, current)
    ctx.save(identity)
    return identity


_STATUS_MESSAGES = {
    AdmissionState.PENDING: "Your account is waiting for an administrator to approve it.",
    AdmissionState.REJECTED: "Your access request was rejected. Contact an administrator if this is a mistake.",
}


def render_status_screen(identity: Identity) -> str:
    state = admission_state(identity)
    message = _STATUS_MESSAGES.get(state) if isinstance(state, AdmissionState) else None
    if message is None:
        message = f"Your account status ({identity.status or 'unknown'}) does not allow access."
    lines = [
        f"Signed in as {identity.name} <{identity.email}>",
        f"Status: {identity.status}",
        "",
        message,
        "",
        "Run 'teamboard whoami --refresh' to check again or 'teamboard signout' to sign out.",
    ]
    return "\n".join(lines) + "\n"


def require_approved(ctx: SessionContext) -> Identity:
    identity = ctx.identity or ctx.load()
    if identity is None:
        raise UsageError("not signed in (run: teamboard signin --id-token <token>)")
    if admission_state(identity) is not AdmissionState.APPROVED:
        raise AdmissionBlocked(render_status_screen(identity), status=identity.status)
    return identity


def require_admin(identity: Identity) -> Identity:
    if not identity.is_admin:
        raise UsageError("the admin panel requires the admin role")
    return identity
