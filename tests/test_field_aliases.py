from teamboard_api.field_aliases import COMMENT_ALIASES
from teamboard_api.field_aliases import NOTICE_ALIASES
from teamboard_api.field_aliases import TASK_ALIASES
from teamboard_api.field_aliases import USER_ALIASES
from teamboard_api.field_aliases import canonical_fields


def test_korean_keys_map_to_canonical_task_fields():
    body = {"담당자": "Kim", "과제명": "Report", "마감일": "2024-06-10", "완료": False, "긴급": True, "제출처": "Office", "비고": "n"}
    assert canonical_fields(body, TASK_ALIASES) == {
        "assignee": "Kim",
        "title": "Report",
        "dueDate": "2024-06-10",
        "completed": False,
        "urgent": True,
        "submissionTarget": "Office",
        "notes": "n",
    }


def test_english_key_wins_over_synonyms():
    body = {"title": "English", "taskName": "Legacy", "과제명": "Korean"}
    assert canonical_fields(body, TASK_ALIASES) == {"title": "English"}
    assert canonical_fields({"taskName": "Legacy", "과제명": "Korean"}, TASK_ALIASES) == {"title": "Legacy"}


def test_explicit_null_is_present_and_absent_is_absent():
    out = canonical_fields({"dueDate": None}, TASK_ALIASES)
    assert out == {"dueDate": None}
    assert "notes" not in out


def test_unknown_keys_are_dropped():
    assert canonical_fields({"whatever": 1}, NOTICE_ALIASES) == {}


def test_legacy_notice_comment_and_user_keys():
    assert canonical_fields({"content": "c", "type": "중요"}, NOTICE_ALIASES) == {"body": "c", "importance": "중요"}
    assert canonical_fields({"공지사항 ID": "n1", "내용": "hi"}, COMMENT_ALIASES) == {"noticeId": "n1", "body": "hi"}
    assert canonical_fields({"googleId": "g", "profilePicture": "p"}, USER_ALIASES) == {
        "externalIdentityId": "g",
        "pictureUrl": "p",
    }
