"""
FastAPI streaming completion route.

Purpose
-------
Expose ``POST /complete/stream`` as an NDJSON endpoint backed by
``StreamingRelay``.

Behavior
--------
- Pre-stream failures (invalid body → 400, missing credential → 500) are
  raised as ``RelayError`` before the response starts and rendered as one
  JSON error object by the app's exception handler.
- Once the response has started (status 200, headers committed) every
  outcome, including upstream errors, arrives as the terminal ``done`` line.
- When the client goes away the relay is cancelled: no ``done`` is written
  and the upstream stream is closed.

Timeout strategy
----------------
The relay applies the configured start/idle timeouts; HTTP-level timeouts
belong to the hosting server.
"""
from __future__ import annotations

import time
from typing import AsyncIterator

from fastapi import Depends, Request
from fastapi.responses import StreamingResponse

from logprob_relay.base.cancellation import CancellationToken
from logprob_relay.base.constants import NDJSON_MEDIA_TYPE
from logprob_relay.base.request_build import build_upstream_request
from logprob_relay.base.streaming import StreamingRelay, encode_event

from .app_parts.app_core import RelayServices, get_services, log_context, read_body, resolve_provider

STREAM_HEADERS = {"Cache-Control": "no-cache"}


async def iter_ndjson(relay: StreamingRelay) -> AsyncIterator[bytes]:
    """Encode relay events as NDJSON lines.

    Leaving early (client disconnect, cancelled response task) cancels the
    relay and closes its event generator so upstream resources are released.
    """
    events = relay.run()
    try:
        async for event in events:
            yield encode_event(event)
    finally:
        if not relay.done_emitted:
            relay.cancel("client disconnected")
        await events.aclose()


async def post_complete_stream(
    request: Request,
    services: RelayServices = Depends(get_services),
) -> StreamingResponse:
    """Stream one completion as NDJSON ``delta``/``logprobs``/``done`` events."""
    started_at = time.perf_counter()
    body = await read_body(request)
    provider = resolve_provider(services)
    upstream_request = build_upstream_request(body)
    relay = StreamingRelay(
        provider,
        upstream_request,
        token=CancellationToken(),
        timeouts=services.config.timeouts,
        ctx=log_context(request, model=body.model),
        started_at=started_at,
    )
    relay.validate()
    return StreamingResponse(iter_ndjson(relay), media_type=NDJSON_MEDIA_TYPE, headers=STREAM_HEADERS)


__all__ = ["iter_ndjson", "post_complete_stream", "STREAM_HEADERS"]
