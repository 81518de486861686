"""Non-streaming completion path (single upstream call)."""
from __future__ import annotations

import asyncio

import pytest

from logprob_relay.base.errors import ErrorCode, RelayError
from logprob_relay.base.models import UpstreamChoice, Usage
from logprob_relay.base.nonstream import complete_once, completion_from_choice
from logprob_relay.mock import ScriptedUpstream, script_from_text
from logprob_relay.openai import OpenAIUpstream
from logprob_relay.tests.fakes import FakeCompletions, FakeOpenAIClient, StatusError, make_request, sdk_response, sdk_token


def _openai(response=None, error=None):
    completions = FakeCompletions(response=response, error=error)
    return OpenAIUpstream(client=FakeOpenAIClient(completions)), completions


def test_tokens_are_decorated_with_probabilities():
    upstream, completions = _openai(sdk_response("Hi there", [sdk_token("Hi", -0.1), sdk_token(" there", -0.3)]))
    c = asyncio.run(complete_once(upstream, make_request(max_tokens=5)))
    assert c.text == "Hi there"
    assert [(t.index, t.token) for t in c.tokens] == [(0, "Hi"), (1, " there")]
    assert c.tokens[0].prob == pytest.approx(0.9048, abs=1e-4)
    assert c.tokens[1].prob == pytest.approx(0.7408, abs=1e-4)
    assert c.finish_reason == "stop"
    assert c.usage == Usage()
    call = completions.calls[0]
    assert call["logprobs"] is True and call["top_logprobs"] == 5 and call["max_tokens"] == 5


def test_missing_token_data_is_logprobs_unavailable():
    upstream, _ = _openai(sdk_response("Hi there", []))
    with pytest.raises(RelayError) as info:
        asyncio.run(complete_once(upstream, make_request()))
    assert info.value.code is ErrorCode.LOGPROBS_UNAVAILABLE
    assert "lacked token logprobs" in info.value.message


def test_missing_finish_reason_and_usage_defaults():
    c = completion_from_choice(
        UpstreamChoice(text="x", tokens=[sdk_token("x", -1.0)]),  # type: ignore[list-item]
        model="m1",
        latency=3,
    )
    assert c.finish_reason == "unknown"
    assert c.usage == Usage(0, 0, 0)
    assert c.model == "m1" and c.latency == 3


def test_upstream_usage_and_model_are_kept():
    upstream, _ = _openai(
        sdk_response(
            "Hi",
            [sdk_token("Hi", -0.1)],
            finish_reason="length",
            usage={"prompt_tokens": 4, "completion_tokens": 1, "total_tokens": 5},
            model="m1-2024",
        )
    )
    c = asyncio.run(complete_once(upstream, make_request(force_prefix_echo="H")))
    assert c.finish_reason == "length"
    assert c.usage == Usage(4, 1, 5)
    assert c.model == "m1-2024"
    assert c.force_prefix_echo == "H"


def test_upstream_exceptions_are_classified():
    upstream, _ = _openai(error=StatusError("invalid model", 404))
    with pytest.raises(RelayError) as info:
        asyncio.run(complete_once(upstream, make_request()))
    assert info.value.code is ErrorCode.NOT_FOUND
    assert isinstance(info.value.__cause__, StatusError)


def test_scripted_upstream_non_stream():
    upstream = ScriptedUpstream(script_from_text("one two three"))
    c = asyncio.run(complete_once(upstream, make_request(max_tokens=2, top_logprobs=1)))
    assert c.text == "one two"
    assert all(len(t.top_logprobs) == 1 for t in c.tokens)
    assert upstream.requests[0].params.max_tokens == 2
