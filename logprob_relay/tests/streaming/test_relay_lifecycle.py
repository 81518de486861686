"""Streaming relay lifecycle.

Covers the success path (summary and accumulated strategies), upstream
failures folded into the terminal event, client abort in its three forms
(token cancel, generator close, task cancellation) and the idle timeout.
"""
from __future__ import annotations

import asyncio
import json
import logging

import pytest

from logprob_relay.base.errors import ErrorCode, RelayError
from logprob_relay.base.models import UpstreamRequest
from logprob_relay.base.streaming import DeltaEvent, DoneEvent, LogprobsEvent, RelayState, StreamingRelay
from logprob_relay.base.timeouts import TimeoutConfig
from logprob_relay.mock import ScriptedToken, ScriptedUpstream, script_from_text
from logprob_relay.tests.fakes import StatusError, make_request

FAST = TimeoutConfig(start_timeout_seconds=2.0, stream_idle_timeout_seconds=2.0)


def _relay(upstream, request=None, timeouts=FAST) -> StreamingRelay:
    return StreamingRelay(upstream, request or make_request(), timeouts=timeouts)


def _assert_single_trailing_done(events):
    dones = [e for e in events if isinstance(e, DoneEvent)]
    assert len(dones) == 1
    assert events[-1] is dones[0]


def test_stream_without_final_object_uses_accumulated_state(collect):
    upstream = ScriptedUpstream(
        [ScriptedToken("Hi"), ScriptedToken(" there")],
        with_summary=False,
        with_logprobs=False,
    )
    relay = _relay(upstream)
    events = collect(relay)
    assert [e.delta for e in events[:-1]] == ["Hi", " there"]
    done = events[-1]
    assert done.ok
    c = done.completion
    assert (c.text, c.tokens, c.finish_reason) == ("Hi there", [], "stop")
    assert c.usage.completion_tokens == 0 and c.usage.prompt_tokens == 0
    assert relay.state is RelayState.CLOSED and relay.done_emitted


def test_success_with_summary_and_batched_tokens(collect):
    upstream = ScriptedUpstream(script_from_text("Hello brave new world again"), token_batch=3)
    relay = _relay(upstream, make_request(top_logprobs=2, force_prefix_echo="Hello"))
    events = collect(relay)
    _assert_single_trailing_done(events)
    c = events[-1].completion
    deltas = "".join(e.delta for e in events if isinstance(e, DeltaEvent))
    assert deltas == c.text == "Hello brave new world again"
    streamed = [e.delta for e in events if isinstance(e, LogprobsEvent)]
    assert [t.index for t in streamed] == list(range(5))
    assert [t.index for t in c.tokens] == list(range(5))
    assert c.token_text == c.text
    assert all(len(t.top_logprobs) <= 2 for t in c.tokens)
    assert c.usage.prompt_tokens == 2 and c.usage.completion_tokens == 5
    assert c.force_prefix_echo == "Hello"
    assert c.latency is not None and c.latency >= 0
    assert upstream.closed_streams == 1


def test_upstream_failure_mid_stream_becomes_done_error(collect):
    upstream = ScriptedUpstream(
        script_from_text("a b c d"),
        fail_after=2,
        error=StatusError("rate limit exceeded", 429),
    )
    relay = _relay(upstream)
    events = collect(relay)
    _assert_single_trailing_done(events)
    assert [e.delta for e in events if isinstance(e, DeltaEvent)] == ["a", " b"]
    assert events[-1].error == "rate_limit:rate limit exceeded"
    assert relay.state is RelayState.CLOSED
    assert upstream.closed_streams == 1


def test_open_failure_becomes_done_error(collect):
    upstream = ScriptedUpstream(open_error=True, error=RuntimeError("connection error"))
    events = collect(_relay(upstream))
    assert len(events) == 1
    assert events[0].error.startswith("transient:")


def test_idle_timeout_becomes_done_error(collect):
    upstream = ScriptedUpstream(script_from_text("slow words here"), delay=1.0)
    relay = _relay(upstream, timeouts=TimeoutConfig(start_timeout_seconds=1.0, stream_idle_timeout_seconds=0.05))
    events = collect(relay)
    _assert_single_trailing_done(events)
    assert events[-1].error.startswith(f"{ErrorCode.TIMEOUT.value}:")
    assert upstream.closed_streams == 1


def test_cancel_after_first_delta_sends_no_done(collect):
    upstream = ScriptedUpstream(script_from_text("one two three four"), delay=0.01)
    relay = _relay(upstream)

    async def run():
        seen = []
        async for event in relay.run():
            seen.append(event)
            if isinstance(event, DeltaEvent):
                relay.cancel()
        return seen

    events = asyncio.run(run())
    assert len(events) == 1 and isinstance(events[0], DeltaEvent)
    assert relay.state is RelayState.ABORTED
    assert not relay.done_emitted
    assert upstream.closed_streams == 1


def test_cancel_before_open_never_opens_upstream(collect):
    upstream = ScriptedUpstream(script_from_text("x y"))
    relay = _relay(upstream)
    relay.cancel()
    assert collect(relay) == []
    assert upstream.requests == []
    assert relay.state is RelayState.ABORTED


def test_closing_the_generator_aborts_and_releases():
    upstream = ScriptedUpstream(script_from_text("one two three"), delay=0.05)
    relay = _relay(upstream)

    async def run():
        events = relay.run()
        first = await events.__anext__()
        await events.aclose()
        return first

    first = asyncio.run(run())
    assert isinstance(first, DeltaEvent)
    assert relay.state is RelayState.ABORTED
    assert relay.token.cancelled
    assert upstream.closed_streams == 1


def test_task_cancellation_propagates_and_releases():
    upstream = ScriptedUpstream(script_from_text("one two three"), delay=5.0)
    relay = _relay(upstream)

    async def run():
        seen = []

        async def consume():
            async for event in relay.run():
                seen.append(event)

        task = asyncio.create_task(consume())
        while not seen:
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return seen

    seen = asyncio.run(run())
    assert not any(isinstance(e, DoneEvent) for e in seen)
    assert relay.state is RelayState.ABORTED
    assert upstream.closed_streams == 1


def test_validation_failures_raise_before_streaming(collect):
    empty = UpstreamRequest(model="m1", messages=[])
    relay = StreamingRelay(ScriptedUpstream(), empty)
    with pytest.raises(RelayError) as info:
        collect(relay)
    assert info.value.code is ErrorCode.VALIDATION
    assert relay.state is RelayState.ERRORED

    relay = StreamingRelay(None, make_request())  # type: ignore[arg-type]
    with pytest.raises(RelayError) as info:
        relay.validate()
    assert info.value.code is ErrorCode.CONFIGURATION


def test_done_is_logged(collect, caplog):
    with caplog.at_level(logging.INFO, logger="logprob_relay"):
        collect(_relay(ScriptedUpstream(script_from_text("hi"))))
    done = [json.loads(r.getMessage()) for r in caplog.records if '"relay.done"' in r.getMessage()]
    assert len(done) == 1
    assert done[0]["ok"] is True and done[0]["phase"] == "done"
