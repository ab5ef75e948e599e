import copy
import json
import re
import sys
import threading
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

ROOT = Path(__file__).resolve().parents[1]
LAMBDA_DIR = str(ROOT / "lambda")
if LAMBDA_DIR not in sys.path:
    sys.path.insert(0, LAMBDA_DIR)


def _client_error(code: str, op: str, message: str = "") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message or code}}, op)


class FakeDdb:
    """In-memory stand-in for the low-level DynamoDB client.

    Supports the calls the record store makes: put_item/get_item with
    ``attribute_not_exists``/``attribute_exists`` conditions, ``SET``-only
    update_item and paginated scan.
    """

    def __init__(self, page_size: int = 100):
        self.tables: dict[str, dict[str, dict]] = {}
        self.page_size = page_size
        self.calls: list[tuple[str, str]] = []
        self.fail_with: str | None = None
        self._lock = threading.Lock()

    def _table(self, name: str) -> dict[str, dict]:
        return self.tables.setdefault(name, {})

    def _begin(self, op: str, table: str) -> None:
        self.calls.append((op, table))
        if self.fail_with:
            raise _client_error(self.fail_with, op, f"{self.fail_with}: simulated failure")

    def _check(self, expr: str | None, names: dict | None, exists: bool, op: str) -> None:
        if not expr:
            return
        m = re.fullmatch(r"(attribute_exists|attribute_not_exists)\((#?\w+)\)", expr.strip())
        assert m, f"unsupported condition: {expr}"
        if m.group(1) == "attribute_exists" and not exists:
            raise _client_error("ConditionalCheckFailedException", op, "The conditional request failed")
        if m.group(1) == "attribute_not_exists" and exists:
            raise _client_error("ConditionalCheckFailedException", op, "The conditional request failed")

    def seed(self, table: str, item: dict) -> None:
        self._table(table)[item["id"]["S"]] = copy.deepcopy(item)

    def put_item(self, TableName, Item, ConditionExpression=None, ExpressionAttributeNames=None, **_):
        with self._lock:
            self._begin("put_item", TableName)
            table = self._table(TableName)
            key = Item["id"]["S"]
            self._check(ConditionExpression, ExpressionAttributeNames, key in table, "PutItem")
            table[key] = copy.deepcopy(Item)
            return {}

    def get_item(self, TableName, Key, **_):
        with self._lock:
            self._begin("get_item", TableName)
            item = self._table(TableName).get(Key["id"]["S"])
            return {"Item": copy.deepcopy(item)} if item else {}

    def update_item(
        self,
        TableName,
        Key,
        UpdateExpression,
        ExpressionAttributeNames=None,
        ExpressionAttributeValues=None,
        ConditionExpression=None,
        **_,
    ):
        names = ExpressionAttributeNames or {}
        values = ExpressionAttributeValues or {}
        with self._lock:
            self._begin("update_item", TableName)
            table = self._table(TableName)
            key = Key["id"]["S"]
            self._check(ConditionExpression, names, key in table, "UpdateItem")
            assert UpdateExpression.startswith("SET ")
            item = table.setdefault(key, copy.deepcopy(Key))
            for clause in UpdateExpression[4:].split(","):
                lhs, rhs = (s.strip() for s in clause.split("="))
                item[names.get(lhs, lhs)] = copy.deepcopy(values[rhs])
            return {"Attributes": copy.deepcopy(item)}

    def scan(self, TableName, Limit=None, ExclusiveStartKey=None, **_):
        with self._lock:
            self._begin("scan", TableName)
            items = list(self._table(TableName).values())
            start = 0
            if ExclusiveStartKey:
                ids = [i["id"]["S"] for i in items]
                start = ids.index(ExclusiveStartKey["id"]["S"]) + 1
            size = min(Limit or self.page_size, self.page_size)
            page = items[start:start + size]
            out = {"Items": copy.deepcopy(page), "Count": len(page)}
            if start + size < len(items):
                out["LastEvaluatedKey"] = {"id": copy.deepcopy(page[-1]["id"])}
            return out


@pytest.fixture
def fake_ddb():
    return FakeDdb()


@pytest.fixture
def table_env(monkeypatch):
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("TEAMBOARD_TASKS_TABLE", "Tasks")
    monkeypatch.setenv("TEAMBOARD_NOTICES_TABLE", "Notices")
    monkeypatch.setenv("TEAMBOARD_COMMENTS_TABLE", "Comments")
    monkeypatch.setenv("TEAMBOARD_USERS_TABLE", "Users")
    monkeypatch.setenv("TEAMBOARD_SCHEMA_VERSION", "2024-06-01")


def _make_event(method, path, body=None, query=None, request_id="r1"):
    return {
        "httpMethod": method,
        "path": path,
        "body": None if body is None else json.dumps(body, ensure_ascii=False),
        "queryStringParameters": query,
        "requestContext": {"requestId": request_id},
    }


@pytest.fixture
def make_event():
    return _make_event
