"""Single entry point over every route family, for the persistent process."""

from __future__ import annotations

from typing import Any, Callable

from teamboard_api import comments_handler
from teamboard_api import database_handler
from teamboard_api import notices_handler
from teamboard_api import tasks_handler
from teamboard_api import users_handler
from teamboard_api.errors import NotFoundError
from teamboard_api.http_common import path_segments
from teamboard_api.http_common import run_handler


HANDLERS: dict[str, Callable[[dict[str, Any], Any], dict[str, Any]]] = {
    "database": database_handler.handler,
    "tasks": tasks_handler.handler,
    "notices": notices_handler.handler,
    "comments": comments_handler.handler,
    "users": users_handler.handler,
    "register": users_handler.handler,
}


def _no_route(event: dict[str, Any], method: str, _resource: str, _rest: list[str]):
    raise NotFoundError(f"route not found: {method} {event.get('path') or '/'}")


def dispatch(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    segments = path_segments(event)
    handler = HANDLERS.get(segments[0]) if segments else None
    if handler is None:
        return run_handler(event, name="teamboard_router", resources=(), route=_no_route)
    return handler(event, context)
