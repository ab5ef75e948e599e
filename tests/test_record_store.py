import threading

import pytest

from teamboard_api.errors import ConfigurationError
from teamboard_api.errors import NotFoundError
from teamboard_api.errors import UpstreamError
from teamboard_api.record_codec import COMMENT
from teamboard_api.record_codec import NOTICE
from teamboard_api.record_codec import TASK
from teamboard_api.record_codec import USER
from teamboard_api.record_store import RecordStore
from teamboard_api.record_store import user_id_for_email


def _store(fake, kind=TASK, table="Tasks"):
    return RecordStore(kind, table, lambda: fake)


def test_create_applies_defaults_and_timestamps(fake_ddb):
    task = _store(fake_ddb).create({"title": "Report"})
    assert task.title == "Report"
    assert task.assignee == ""
    assert task.due_date is None
    assert task.completed is False
    assert task.created_at and task.created_at == task.updated_at

    item = fake_ddb.tables["Tasks"][task.id]
    assert item["archived"] == {"BOOL": False}
    assert item["dueDate"] == {"NULL": True}


def test_missing_table_name_fails_before_any_call(fake_ddb):
    store = RecordStore(TASK, "", lambda: fake_ddb)
    with pytest.raises(ConfigurationError):
        store.create({"title": "x"})
    with pytest.raises(ConfigurationError):
        store.list()
    assert fake_ddb.calls == []


def test_upstream_failure_carries_message(fake_ddb):
    fake_ddb.fail_with = "ProvisionedThroughputExceededException"
    with pytest.raises(UpstreamError) as exc:
        _store(fake_ddb).list()
    assert "ProvisionedThroughputExceededException" in exc.value.message


def test_completion_only_update_leaves_other_fields_identical(fake_ddb):
    store = _store(fake_ddb)
    task = store.create(
        {"assignee": "Kim", "title": "Report", "dueDate": "2024-06-10", "urgent": True, "notes": "n", "submissionTarget": "Office"}
    )
    before = dict(fake_ddb.tables["Tasks"][task.id])

    updated = store.update(task.id, {"completed": True})

    assert updated.completed is True
    after = fake_ddb.tables["Tasks"][task.id]
    for key in before:
        if key in ("completed", "updatedAt"):
            continue
        assert after[key] == before[key], key
    assert updated.updated_at >= task.updated_at


def test_update_explicit_null_clears_due_date_and_absent_keeps_it(fake_ddb):
    store = _store(fake_ddb)
    task = store.create({"title": "Report", "dueDate": "2024-06-10"})

    kept = store.update(task.id, {"title": "Report v2"})
    assert kept.due_date == "2024-06-10"

    cleared = store.update(task.id, {"dueDate": None})
    assert cleared.due_date is None
    assert cleared.title == "Report v2"


def test_update_missing_id_is_not_found(fake_ddb):
    with pytest.raises(NotFoundError):
        _store(fake_ddb).update("nope", {"completed": True})


def test_update_leaves_legacy_notice_title_untouched(fake_ddb):
    fake_ddb.seed("Notices", {"id": {"S": "n1"}, "title": {"S": "Plain title"}, "body": {"S": "old"}})
    store = _store(fake_ddb, NOTICE, "Notices")

    out = store.update("n1", {"body": "new"})

    assert out.body == "new"
    assert fake_ddb.tables["Notices"]["n1"]["title"] == {"S": "Plain title"}


def test_archive_is_idempotent_and_hides_record(fake_ddb):
    store = _store(fake_ddb)
    task = store.create({"title": "Report"})

    store.archive(task.id)
    writes = [c for c in fake_ddb.calls if c[0] == "update_item"]
    again = store.archive(task.id)

    assert again.id == task.id
    assert [c for c in fake_ddb.calls if c[0] == "update_item"] == writes
    assert fake_ddb.tables["Tasks"][task.id]["archived"] == {"BOOL": True}
    assert store.list() == []
    with pytest.raises(NotFoundError):
        store.get(task.id)
    with pytest.raises(NotFoundError):
        store.update(task.id, {"completed": True})


def test_list_follows_pagination_filters_and_sorts(fake_ddb):
    fake_ddb.page_size = 2
    for idx, notice in enumerate(["n1", "n2", "n1", "n3", "n1"]):
        fake_ddb.seed(
            "Comments",
            {
                "id": {"S": f"c{idx}"},
                "noticeId": {"S": notice},
                "body": {"S": f"body {idx}"},
                "createdAt": {"S": f"2024-06-0{5 - idx}T00:00:00.000000Z"},
            },
        )
    store = _store(fake_ddb, COMMENT, "Comments")

    out = store.list({"notice_id": "n1"}, sort_key="created_at")

    assert [c.id for c in out] == ["c4", "c2", "c0"]
    assert len([c for c in fake_ddb.calls if c[0] == "scan"]) == 3


def test_scan_page_passes_store_cursor_through(fake_ddb):
    fake_ddb.page_size = 2
    for idx in range(3):
        fake_ddb.seed("Tasks", {"id": {"S": f"t{idx}"}})
    store = _store(fake_ddb)

    first, cursor = store.scan_page(2)
    second, end = store.scan_page(2, cursor)

    assert [i["id"]["S"] for i in first] == ["t0", "t1"]
    assert cursor == {"id": {"S": "t1"}}
    assert [i["id"]["S"] for i in second] == ["t2"]
    assert end is None


def test_register_user_is_idempotent_by_email(fake_ddb):
    store = _store(fake_ddb, USER, "Users")

    first, created = store.register_user({"email": "Kim@Example.com ", "name": "Kim", "status": "approved"})
    again, created_again = store.register_user({"email": "kim@example.com", "name": "Other"})

    assert created is True
    assert created_again is False
    assert first.id == again.id == user_id_for_email("kim@example.com")
    assert first.status == "pending"
    assert first.role == "user"
    assert again.name == "Kim"


def test_register_user_adopts_legacy_record_by_email(fake_ddb):
    fake_ddb.seed(
        "Users",
        {"id": {"S": "legacy-1"}, "email": {"S": "kim@example.com"}, "status": {"S": "승인됨"}, "role": {"S": "관리자"}},
    )
    user, created = _store(fake_ddb, USER, "Users").register_user({"email": "KIM@example.com"})
    assert created is False
    assert user.id == "legacy-1"
    assert user.status == "approved"
    assert user.role == "admin"


def test_concurrent_registration_leaves_exactly_one_user(fake_ddb):
    store = _store(fake_ddb, USER, "Users")
    results = []
    barrier = threading.Barrier(8)

    def register():
        barrier.wait()
        results.append(store.register_user({"email": "race@example.com", "name": "Race"}))

    threads = [threading.Thread(target=register) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(fake_ddb.tables["Users"]) == 1
    assert len({user.id for user, _created in results}) == 1
    assert sum(1 for _user, created in results if created) == 1


def test_created_notice_matches_later_reads(fake_ddb):
    store = _store(fake_ddb, kind=NOTICE, table="Notices")
    created = store.create({"title": "Hello"})

    assert created.author == "익명"
    assert created == store.get(created.id)


def test_registered_user_matches_later_reads(fake_ddb):
    store = _store(fake_ddb, kind=USER, table="Users")
    user, created = store.register_user({"email": "kim@example.com", "name": "Kim"})

    assert created is True
    assert user == store.get(user.id)
