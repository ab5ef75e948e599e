from __future__ import annotations

import uuid
from dataclasses import fields as dataclass_fields
from dataclasses import replace
from typing import Any, Callable

from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError
from teamboard_api.errors import ConfigurationError
from teamboard_api.errors import NotFoundError
from teamboard_api.errors import UpstreamError
from teamboard_api.errors import ValidationError
from teamboard_api.http_common import now_iso
from teamboard_api.record_codec import ROLE_USER
from teamboard_api.record_codec import STATUS_PENDING
from teamboard_api.record_codec import USER
from teamboard_api.record_codec import RecordKind
from teamboard_api.record_codec import UserRecord
from teamboard_api.record_codec import is_archived


def user_id_for_email(email: str) -> str:
    normalized = str(email or "").strip().lower()
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{normalized}"))


def is_conditional_failure(e: Exception) -> bool:
    if type(e).__name__ == "ConditionalCheckFailedException":
        return True
    if isinstance(e, ClientError):
        return (e.response.get("Error") or {}).get("Code") == "ConditionalCheckFailedException"
    return False


class RecordStore:
    """Create/update/archive/list for one record kind over one DynamoDB table."""

    def __init__(self, kind: RecordKind, table_name: str, ddb: Callable[[], Any]) -> None:
        self.kind = kind
        self.table_name = table_name
        self._ddb = ddb

    def _client(self) -> Any:
        if not self.table_name:
            raise ConfigurationError(f"Database ID not found: {self.kind.name} table is not configured")
        return self._ddb()

    def _call(self, op: str, **kwargs: Any) -> dict[str, Any]:
        client = self._client()
        try:
            return getattr(client, op)(TableName=self.table_name, **kwargs)
        except ClientError as e:
            if is_conditional_failure(e):
                raise
            raise UpstreamError(str(e)) from e
        except BotoCoreError as e:
            raise UpstreamError(str(e)) from e

    def _stamp_new(self, rec: Any, ts: str) -> Any:
        names = {f.name for f in dataclass_fields(rec)}
        changes = {n: ts for n in ("created_at", "updated_at", "joined_at") if n in names}
        return replace(rec, **changes)

    def _get_raw(self, record_id: str, *, include_archived: bool = False) -> dict[str, Any]:
        rid = str(record_id or "").strip()
        if not rid:
            raise NotFoundError(f"{self.kind.name} not found")
        resp = self._call("get_item", Key={"id": {"S": rid}}, ConsistentRead=True)
        item = resp.get("Item")
        if not item or (is_archived(item) and not include_archived):
            raise NotFoundError(f"{self.kind.name} not found: {rid}")
        return item

    def _put_new(self, rec: Any, ts: str) -> dict[str, Any]:
        raw = self.kind.to_raw(rec)
        raw["updatedAt"] = {"S": ts}
        raw["archived"] = {"BOOL": False}
        self._call(
            "put_item",
            Item=raw,
            ConditionExpression="attribute_not_exists(#id)",
            ExpressionAttributeNames={"#id": "id"},
        )
        return raw

    def _set_attributes(self, record_id: str, attrs: dict[str, Any]) -> dict[str, Any]:
        names: dict[str, str] = {"#id": "id"}
        values: dict[str, Any] = {}
        clauses: list[str] = []
        for idx, (name, value) in enumerate(attrs.items()):
            names[f"#a{idx}"] = name
            values[f":v{idx}"] = value
            clauses.append(f"#a{idx} = :v{idx}")
        try:
            out = self._call(
                "update_item",
                Key={"id": {"S": record_id}},
                ConditionExpression="attribute_exists(#id)",
                UpdateExpression="SET " + ", ".join(clauses),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            raise NotFoundError(f"{self.kind.name} not found: {record_id}") from e
        return out.get("Attributes") or {}

    def create(self, fields: dict[str, Any]) -> Any:
        self._client()
        rec = self.kind.apply(self.kind.record_type(id=str(uuid.uuid4())), fields)
        ts = now_iso()
        rec = self._stamp_new(rec, ts)
        try:
            raw = self._put_new(rec, ts)
        except ClientError as e:
            # uuid4 collision
            raise UpstreamError(str(e)) from e
        # Same shape a later get() returns.
        return self.kind.to_record(raw)

    def get(self, record_id: str) -> Any:
        return self.kind.to_record(self._get_raw(record_id))

    def update(self, record_id: str, fields: dict[str, Any]) -> Any:
        existing = self._get_raw(record_id)
        current = self.kind.to_record(existing)
        updated = self.kind.apply(current, fields)

        before = self.kind.to_raw(current)
        after = self.kind.to_raw(updated)
        changed = {k: v for k, v in after.items() if k not in ("id", "updatedAt") and before.get(k) != v}

        ts = now_iso()
        changed["updatedAt"] = {"S": ts}
        attrs = self._set_attributes(current.id, changed)
        return self.kind.to_record(attrs)

    def archive(self, record_id: str) -> Any:
        existing = self._get_raw(record_id, include_archived=True)
        if is_archived(existing):
            return self.kind.to_record(existing)
        attrs = self._set_attributes(
            self.kind.to_record(existing).id,
            {"archived": {"BOOL": True}, "updatedAt": {"S": now_iso()}},
        )
        return self.kind.to_record(attrs)

    def _scan_all(self) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        start_key: dict[str, Any] | None = None
        while True:
            kwargs: dict[str, Any] = {}
            if start_key:
                kwargs["ExclusiveStartKey"] = start_key
            resp = self._call("scan", **kwargs)
            items.extend(resp.get("Items") or [])
            start_key = resp.get("LastEvaluatedKey")
            if not start_key:
                break
        return items

    def list(
        self,
        filters: dict[str, Any] | None = None,
        sort_key: str | None = None,
        *,
        descending: bool = False,
    ) -> list[Any]:
        out = []
        for item in self._scan_all():
            if is_archived(item):
                continue
            rec = self.kind.to_record(item)
            if filters and any(getattr(rec, k) != v for k, v in filters.items()):
                continue
            out.append(rec)
        if sort_key:
            out.sort(key=lambda r: getattr(r, sort_key) or "", reverse=descending)
        return out

    def scan_page(
        self, limit: int, start_key: dict[str, Any] | None = None
    ) -> tuple[list[dict[str, Any]], dict[str, Any] | None]:
        kwargs: dict[str, Any] = {"Limit": int(limit)}
        if start_key:
            kwargs["ExclusiveStartKey"] = start_key
        resp = self._call("scan", **kwargs)
        items = [i for i in (resp.get("Items") or []) if not is_archived(i)]
        return items, resp.get("LastEvaluatedKey")

    def find_user_by_email(self, email: str) -> UserRecord | None:
        needle = str(email or "").strip().lower()
        for rec in self.list():
            if rec.email.strip().lower() == needle:
                return rec
        return None

    def register_user(self, fields: dict[str, Any]) -> tuple[UserRecord, bool]:
        """Upsert a user keyed by email; returns ``(user, created)``.

        The item id is derived from the normalized email and written with a
        conditional put, so concurrent first sign-ins leave exactly one user.
        """
        if self.kind is not USER:
            raise TypeError("register_user requires the user store")
        email = fields.get("email")
        if not isinstance(email, str) or not email.strip():
            raise ValidationError("email is required")
        email = email.strip()

        # Records written before ids were derived from the email.
        legacy = self.find_user_by_email(email)
        if legacy is not None:
            return legacy, False

        profile = {k: v for k, v in fields.items() if k not in ("role", "status", "email")}
        rec = self.kind.apply(UserRecord(id=user_id_for_email(email)), profile)
        ts = now_iso()
        rec = replace(self._stamp_new(rec, ts), email=email, role=ROLE_USER, status=STATUS_PENDING)
        try:
            raw = self._put_new(rec, ts)
        except ClientError:
            existing = self._get_raw(rec.id, include_archived=True)
            return self.kind.to_record(existing), False
        return self.kind.to_record(raw), True
