# ok_target/main.py
"""
Constant-response application.

Every HTTP request, whatever its method, path, headers or body, is answered
with `200 OK`, `content-length: 0` and no body. The request body is never
received; uvicorn discards whatever the client sent.

FastAPI's generated /docs, /redoc and /openapi.json routes are disabled so no
path behaves differently from any other.
"""

from __future__ import annotations

from fastapi import FastAPI
from starlette.responses import Response
from starlette.routing import Mount
from starlette.types import Receive, Scope, Send

from ok_target.config import Settings
from ok_target.config import settings as default_settings
from ok_target.observability import AccessLogMiddleware, setup_json_logging

APP_NAME = "ok-target"
APP_DESC = "Answers every HTTP request with 200 OK and an empty body."
ACCESS_LOGGER_NAME = "ok_target.access"


class ConstantResponse:
    """ASGI endpoint that never looks at the request."""

    status_code = 200

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket":
            await send({"type": "websocket.close", "code": 1000})
            return
        # Response(None) renders b"" and sets content-length: 0, no content-type
        response = Response(status_code=self.status_code)
        await response(scope, receive, send)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    application = FastAPI(
        title=APP_NAME,
        description=APP_DESC,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        # Mount at "/" matches every path, and a mounted ASGI app has no method filter
        routes=[Mount("/", app=ConstantResponse())],
    )
    if settings.access_log:
        application.add_middleware(
            AccessLogMiddleware, logger=setup_json_logging(ACCESS_LOGGER_NAME, "info")
        )
    return application


app = create_app()
