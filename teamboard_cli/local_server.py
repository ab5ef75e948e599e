"""Persistent-process deployment: every route family behind one HTTP server.

Requests are reshaped into API Gateway proxy events and dispatched to the
same handler modules the function-per-route deployment runs.
"""

from __future__ import annotations

import base64
import uuid
from typing import Any

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from . import __version__

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8001


def _dispatch(event: dict[str, Any]) -> dict[str, Any]:
    from teamboard_api import api_router

    return api_router.dispatch(event, None)


def _event_from_request(request: Request, path: str, body: bytes) -> dict[str, Any]:
    event: dict[str, Any] = {
        "httpMethod": request.method,
        "path": "/" + path.lstrip("/"),
        "queryStringParameters": dict(request.query_params) or None,
        "headers": dict(request.headers),
        "body": None,
        "isBase64Encoded": False,
        "requestContext": {"requestId": str(uuid.uuid4())},
    }
    if body:
        try:
            event["body"] = body.decode("utf-8")
        except UnicodeDecodeError:
            event["body"] = base64.b64encode(body).decode("ascii")
            event["isBase64Encoded"] = True
    return event


def create_app() -> FastAPI:
    app = FastAPI(
        title="teamboard",
        description="Team task, notice and user-approval API",
        version=__version__,
    )

    @app.api_route("/{path:path}", methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"])
    async def proxy(path: str, request: Request) -> Response:
        event = _event_from_request(request, path, await request.body())
        out = await run_in_threadpool(_dispatch, event)
        return Response(
            content=out.get("body") or "",
            status_code=int(out.get("statusCode") or 500),
            headers=out.get("headers") or {},
        )

    return app


def serve(*, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
