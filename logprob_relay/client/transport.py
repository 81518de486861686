"""HTTP transports for the relay (Python consumer side).

Purpose
-------
- ``RestTransport``: ``POST /complete`` returning one ``CompletionLP``.
- ``StreamTransport``: ``POST /complete/stream`` returning an
  ``EventStream`` of decoded protocol events with an ``abort()`` handle.

External dependencies
---------------------
- ``httpx.AsyncClient``. A caller-supplied client is used as-is and never
  closed here; otherwise one client is created per call and closed after it.

Failure semantics
-----------------
- Both transports clamp ``max_tokens`` and ``top_logprobs`` before sending
  (the server clamps again).
- A non-2xx stream response becomes a single
  ``done{error: "HTTP <status>: <reason> - <detail>"}``; the REST transport
  raises ``RelayError`` with the same text.
- Malformed NDJSON lines are skipped (logged by ``decode_line``).
- ``abort()`` interrupts a pending read at once; the stream closes the
  response and ends without a ``done`` event.

Timeout strategy
----------------
The client timeout defaults to ``get_timeout_config().http_timeout_seconds``.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

import httpx

from ..base.cancellation import CancellationToken
from ..base.constants import MAX_TOKENS_RANGE, TOP_LOGPROBS_RANGE
from ..base.errors import ErrorCode, RelayError
from ..base.logging import get_logger, log_event
from ..base.models import CompletionLP, ModelInfo, clamp
from ..base.streaming import DoneEvent, StreamEvent, decode_line
from ..base.timeouts import get_timeout_config

DEFAULT_API_BASE = "http://127.0.0.1:8787/api"

_logger = get_logger("client.transport")

_EOF = object()


def build_body(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy ``params`` with ``max_tokens``/``top_logprobs`` clamped to range."""
    body = dict(params)
    if body.get("max_tokens") is not None:
        body["max_tokens"] = int(clamp(int(body["max_tokens"]), *MAX_TOKENS_RANGE))
    if body.get("top_logprobs") is not None:
        body["top_logprobs"] = int(clamp(int(body["top_logprobs"]), *TOP_LOGPROBS_RANGE))
    return body


def http_error_text(response: httpx.Response, detail: str) -> str:
    text = f"HTTP {response.status_code}: {response.reason_phrase}"
    return f"{text} - {detail}" if detail else text


class _BaseTransport:
    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._timeout = timeout if timeout is not None else get_timeout_config().http_timeout_seconds

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client


class RestTransport(_BaseTransport):
    """Non-streaming transport: one request, one ``CompletionLP``."""

    async def models(self) -> List[ModelInfo]:
        async with self._session() as client:
            res = await client.get(self.url("models"))
            if not res.is_success:
                raise _http_error(res, res.text)
            return [ModelInfo(id=str(m["id"]), name=str(m.get("name") or m["id"])) for m in res.json()]

    async def complete(self, params: Mapping[str, Any]) -> CompletionLP:
        """POST ``/complete``.

        Raises:
            RelayError: for non-2xx responses (message ``HTTP <status>: ...``).
        """
        async with self._session() as client:
            res = await client.post(self.url("complete"), json=build_body(params))
            if not res.is_success:
                raise _http_error(res, res.text)
            return CompletionLP.from_dict(res.json())


def _http_error(res: httpx.Response, detail: str) -> RelayError:
    code = ErrorCode.VALIDATION if res.status_code == 400 else ErrorCode.UPSTREAM
    return RelayError(
        code=code,
        message=http_error_text(res, detail),
        retryable=res.status_code >= 500,
        details={"status": res.status_code},
    )


async def _read_line(lines: AsyncIterator[str]) -> Any:
    try:
        return await lines.__anext__()
    except StopAsyncIteration:
        return _EOF


class EventStream:
    """Async iterable of protocol events for one streaming request."""

    def __init__(self, transport: "StreamTransport", body: Dict[str, Any]) -> None:
        self._transport = transport
        self._body = body
        self._token = CancellationToken()

    @property
    def aborted(self) -> bool:
        return self._token.cancelled

    def abort(self) -> None:
        self._token.cancel("client aborted")

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        return self._execute()

    async def _execute(self) -> AsyncIterator[StreamEvent]:
        if self._token.cancelled:
            return
        loop = asyncio.get_running_loop()
        aborted = asyncio.Event()
        self._token.on_cancel(lambda _reason: loop.call_soon_threadsafe(aborted.set))
        abort_wait = asyncio.ensure_future(aborted.wait())
        try:
            async with self._transport._session() as client:
                async with client.stream("POST", self._transport.url("complete/stream"), json=self._body) as res:
                    if not res.is_success:
                        detail = (await res.aread()).decode("utf-8", errors="replace")
                        yield DoneEvent(error=http_error_text(res, detail))
                        return
                    lines = res.aiter_lines()
                    while not self._token.cancelled:
                        next_line = asyncio.ensure_future(_read_line(lines))
                        await asyncio.wait({next_line, abort_wait}, return_when=asyncio.FIRST_COMPLETED)
                        if not next_line.done():
                            # A pending read loses to abort; leaving the block closes the response.
                            next_line.cancel()
                            await asyncio.wait({next_line})
                            break
                        line = next_line.result()
                        if line is _EOF:
                            return
                        event = decode_line(line)
                        if event is not None:
                            yield event
                    log_event(_logger, "client.stream.aborted", reason=self._token.reason)
        finally:
            abort_wait.cancel()


class StreamTransport(_BaseTransport):
    """Streaming transport over NDJSON."""

    def complete(self, params: Mapping[str, Any]) -> EventStream:
        return EventStream(self, build_body(params))


__all__ = [
    "DEFAULT_API_BASE",
    "EventStream",
    "RestTransport",
    "StreamTransport",
    "build_body",
    "http_error_text",
]
