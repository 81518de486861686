"""Request correlation middleware.

Pure ASGI (no ``BaseHTTPMiddleware``) so streaming responses pass through
untouched. The inbound ``X-Request-ID`` is reused when present, otherwise a
``uuid4().hex`` is generated; it is exposed as ``request.state.request_id``
and echoed on every response.
"""
from __future__ import annotations

import uuid
from typing import Any, Awaitable, Callable, MutableMapping

from logprob_relay.base.constants import REQUEST_ID_HEADER

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]

_HEADER = REQUEST_ID_HEADER.lower().encode("latin-1")
_MAX_LEN = 128


def _inbound_id(scope: Scope) -> str | None:
    for name, value in scope.get("headers") or ():
        if name.lower() == _HEADER:
            rid = value.decode("latin-1").strip()
            if rid and len(rid) <= _MAX_LEN:
                return rid
    return None


class RequestIdMiddleware:
    def __init__(self, app: Callable[..., Awaitable[None]]) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        rid = _inbound_id(scope) or uuid.uuid4().hex
        scope.setdefault("state", {})["request_id"] = rid

        async def send_with_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = [(k, v) for k, v in message.get("headers") or () if k.lower() != _HEADER]
                headers.append((_HEADER, rid.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_id)


__all__ = ["RequestIdMiddleware"]
