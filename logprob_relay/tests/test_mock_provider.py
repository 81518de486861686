from __future__ import annotations

import asyncio

from logprob_relay.base.models import TextFragment, TokenFragment
from logprob_relay.mock import ScriptedToken, ScriptedUpstream, script_from_text
from logprob_relay.tests.fakes import make_request


def test_script_from_text_is_deterministic():
    a = script_from_text("the quick fox")
    b = script_from_text("the quick fox")
    assert a == b
    assert [t.text for t in a] == ["the", " quick", " fox"]
    assert all(len(t.alts) == 3 for t in a)


def test_default_reply_echoes_last_user_message():
    upstream = ScriptedUpstream()
    choice = asyncio.run(upstream.complete(make_request("ping")))
    assert choice.text == "You said: ping"
    assert upstream.provider_name == "mock"


def test_stream_pushes_text_then_batched_tokens():
    upstream = ScriptedUpstream([ScriptedToken("a"), ScriptedToken("b"), ScriptedToken("c")], token_batch=2)

    async def run():
        stream = await upstream.open_stream(make_request())
        items = [f async for f in stream]
        summary = await stream.final_summary()
        await stream.aclose()
        await stream.aclose()
        return items, summary

    items, summary = asyncio.run(run())
    kinds = ["T" if isinstance(f, TextFragment) else "K" for f in items]
    assert kinds == ["T", "T", "K", "K", "T", "K"]
    assert [f.token for f in items if isinstance(f, TokenFragment)] == ["a", "b", "c"]
    assert summary.text == "abc"
    assert upstream.closed_streams == 1


def test_without_summary_or_logprobs():
    upstream = ScriptedUpstream([ScriptedToken("a")], with_summary=False, with_logprobs=False)

    async def run():
        stream = await upstream.open_stream(make_request())
        items = [f async for f in stream]
        return items, await stream.final_summary()

    items, summary = asyncio.run(run())
    assert items == [TextFragment("a")]
    assert summary is None


def test_recording_can_be_turned_off():
    upstream = ScriptedUpstream([ScriptedToken("a")], record=False)

    async def run():
        await upstream.complete(make_request())
        stream = await upstream.open_stream(make_request())
        _ = [f async for f in stream]
        await stream.aclose()

    asyncio.run(run())
    assert upstream.requests == []
    assert upstream.closed_streams == 0
