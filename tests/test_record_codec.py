import pytest

from teamboard_api import record_codec
from teamboard_api.errors import ValidationError
from teamboard_api.record_codec import NOTICE
from teamboard_api.record_codec import TASK
from teamboard_api.record_codec import USER
from teamboard_api.record_codec import NoticeRecord
from teamboard_api.record_codec import TaskRecord
from teamboard_api.record_codec import UserRecord


def test_notice_title_with_author_prefix_is_split():
    assert record_codec.parse_notice_title("[Alice] Weekly Update") == ("Alice", "Weekly Update")


def test_notice_title_without_prefix_belongs_to_anonymous():
    assert record_codec.parse_notice_title("Weekly Update") == ("익명", "Weekly Update")
    assert record_codec.parse_notice_title("") == ("익명", "")


def test_notice_title_encoding_defaults_author():
    assert record_codec.encode_notice_title("", "Hello") == "[익명] Hello"
    assert record_codec.encode_notice_title("Bob", "Hello") == "[Bob] Hello"


def test_task_round_trip_for_well_formed_record():
    rec = TaskRecord(
        id="t1",
        assignee="Kim",
        title="Report",
        due_date="2024-06-10",
        completed=False,
        urgent=True,
        submission_target="Office",
        notes="n",
        created_at="2024-06-01T00:00:00.000000Z",
        updated_at="2024-06-02T00:00:00.000000Z",
    )
    raw = record_codec.to_raw_properties(rec)
    assert raw["dueDate"] == {"S": "2024-06-10"}
    assert raw["urgent"] == {"BOOL": True}
    assert record_codec.to_record(TASK, raw) == rec


def test_task_without_due_date_stores_null():
    raw = record_codec.to_raw_properties(TaskRecord(id="t1"))
    assert raw["dueDate"] == {"NULL": True}
    assert record_codec.to_record(TASK, raw).due_date is None


def test_notice_and_user_round_trip():
    notice = NoticeRecord(id="n1", title="Weekly Update", body="b", author="Alice", importance="important")
    assert record_codec.to_record(NOTICE, record_codec.to_raw_properties(notice)) == notice

    user = UserRecord(id="u1", name="Kim", email="kim@example.com", role="admin", status="approved")
    assert record_codec.to_record(USER, record_codec.to_raw_properties(user)) == user


def test_missing_and_malformed_attributes_degrade_to_defaults():
    raw = {
        "id": {"S": "t1"},
        "completed": {"S": "yes"},
        "urgent": "true",
        "dueDate": {"BOOL": True},
        "title": None,
    }
    rec = record_codec.to_record(TASK, raw)
    assert rec == TaskRecord(id="t1")
    assert record_codec.to_record(TASK, None) == TaskRecord(id="")


def test_original_language_enum_values_read_as_canonical():
    raw = {
        "id": {"S": "u1"},
        "role": {"S": "관리자"},
        "status": {"S": "승인됨"},
    }
    rec = record_codec.to_record(USER, raw)
    assert rec.role == "admin"
    assert rec.status == "approved"

    notice = record_codec.to_record(NOTICE, {"id": {"S": "n1"}, "importance": {"S": "중요"}})
    assert notice.importance == "important"


def test_unknown_status_is_preserved_verbatim():
    rec = record_codec.to_record(USER, {"id": {"S": "u1"}, "status": {"S": "suspended"}})
    assert rec.status == "suspended"


def test_missing_status_reads_as_pending():
    assert record_codec.to_record(USER, {"id": {"S": "u1"}}).status == "pending"


def test_apply_coerces_and_ignores_unknown_fields():
    rec = TASK.apply(
        TaskRecord(id="t1"),
        {"title": "A", "dueDate": "2024-06-10T09:30:00Z", "completed": True, "bogus": 1},
    )
    assert rec.title == "A"
    assert rec.due_date == "2024-06-10"
    assert rec.completed is True


def test_apply_null_clears_strings_and_due_date():
    rec = TaskRecord(id="t1", notes="x", due_date="2024-06-10")
    out = TASK.apply(rec, {"notes": None, "dueDate": None})
    assert out.notes == ""
    assert out.due_date is None
    assert TASK.apply(rec, {"dueDate": ""}).due_date is None


@pytest.mark.parametrize(
    "fields",
    [
        {"completed": "true"},
        {"urgent": 1},
        {"dueDate": "June 10"},
        {"dueDate": "2024-02-30"},
        {"title": 5},
    ],
)
def test_apply_rejects_invalid_task_values(fields):
    with pytest.raises(ValidationError):
        TASK.apply(TaskRecord(id="t1"), fields)


def test_apply_enum_accepts_synonyms_and_rejects_unknown():
    assert USER.apply(UserRecord(id="u1"), {"status": "거부됨"}).status == "rejected"
    assert USER.apply(UserRecord(id="u1"), {"role": "LEAD"}).role == "lead"
    with pytest.raises(ValidationError):
        USER.apply(UserRecord(id="u1"), {"status": "maybe"})
    with pytest.raises(ValidationError):
        NOTICE.apply(NoticeRecord(id="n1"), {"importance": None})
