"""
Middleware that injects a request ID into every incoming request.

An incoming X-Request-ID is reused when it looks sane; otherwise a fresh
UUID is generated. The ID is echoed back on the response.
"""

import uuid

from fastapi import Request

from core.logging import bind_context

MAX_REQUEST_ID_LENGTH = 64


def _resolve_request_id(raw: str | None) -> str:
    if raw and len(raw) <= MAX_REQUEST_ID_LENGTH and raw.isprintable():
        return raw
    return str(uuid.uuid4())


class RequestIDMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        request_id = _resolve_request_id(request.headers.get("X-Request-ID"))
        scope.setdefault("state", {})["request_id"] = request_id

        bind_context(request_id=request_id)

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                headers = message.setdefault("headers", [])
                headers.append((b"x-request-id", request_id.encode()))
            await send(message)

        await self.app(scope, receive, send_wrapper)
