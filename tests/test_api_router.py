import importlib
import json

import pytest


@pytest.fixture
def router(table_env, fake_ddb):
    from teamboard_api import api_router
    from teamboard_api import comments_handler
    from teamboard_api import database_handler
    from teamboard_api import notices_handler
    from teamboard_api import tasks_handler
    from teamboard_api import users_handler

    for mod in (database_handler, tasks_handler, notices_handler, comments_handler, users_handler):
        importlib.reload(mod)
        mod._ddb_client = fake_ddb
    return importlib.reload(api_router)


def test_routes_every_family_through_one_entry_point(router, make_event):
    out = router.dispatch(make_event("POST", "/api/tasks", {"title": "T"}))
    assert out["statusCode"] == 201

    out = router.dispatch(make_event("GET", "/api/database"))
    assert [r["properties"]["title"]["S"] for r in json.loads(out["body"])["results"]] == ["T"]

    assert router.dispatch(make_event("GET", "/notices"))["statusCode"] == 200
    assert router.dispatch(make_event("POST", "/api/register", {"email": "a@x"}))["statusCode"] == 201
    assert router.dispatch(make_event("GET", "/api/users"))["statusCode"] == 200


def test_unknown_route_is_404(router, make_event):
    out = router.dispatch(make_event("GET", "/api/unknown"))
    assert out["statusCode"] == 404
    assert json.loads(out["body"])["errorCode"] == "NOT_FOUND"
    assert router.dispatch(make_event("GET", "/"))["statusCode"] == 404
