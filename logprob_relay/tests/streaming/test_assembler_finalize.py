"""Completion assembler and the two finalization strategies."""
from __future__ import annotations

import asyncio

from logprob_relay.base.models import FinalSummary, TokenFragment, Usage
from logprob_relay.base.streaming import (
    CompletionAssembler,
    choose_finalizer,
    fetch_summary,
    finalize_from_accumulated,
    finalize_from_summary,
)
from logprob_relay.base.streaming.finalize import ACCUMULATED_STRATEGY, SUMMARY_STRATEGY
from logprob_relay.tests.fakes import sdk_token


def _fill(assembler, batches):
    for batch in batches:
        for text in batch:
            assembler.on_text_fragment(text)
            assembler.on_token_fragment(TokenFragment(token=text, logprob=-0.5))


def test_indices_are_contiguous_across_batches():
    assembler = CompletionAssembler()
    _fill(assembler, [["a"], ["b", "c", "d"], [], ["e", "f"]])
    assert [t.index for t in assembler.tokens] == list(range(6))
    assert assembler.next_index == 6
    assert assembler.aggregated_text == "abcdef"


def test_raw_upstream_token_shapes_are_normalized():
    assembler = CompletionAssembler()
    event = assembler.on_token_fragment(sdk_token("Hi", None, [("Hey", -1.0)]))
    assert event.delta.logprob == float("-inf")
    assert event.delta.prob == 0.0
    assert event.delta.top_logprobs[0].token == "Hey"
    event = assembler.on_token_fragment({"token": "!", "logprob": -0.2})
    assert event.delta.index == 1


def test_accumulated_strategy():
    assembler = CompletionAssembler()
    _fill(assembler, [["Hi", " there"]])
    c = finalize_from_accumulated(assembler, model="m1", latency=12, force_prefix_echo="P")
    assert c.text == "Hi there"
    assert c.finish_reason == "stop"
    assert c.usage == Usage(0, 2, 2)
    assert (c.model, c.latency, c.force_prefix_echo) == ("m1", 12, "P")


def test_summary_strategy_prefers_summary_but_keeps_tokens():
    assembler = CompletionAssembler()
    _fill(assembler, [["Hi", " there"]])
    summary = FinalSummary(text="Hi there!", finish_reason="length", usage=Usage(3, 2, 5), model="m1-2024")
    c = finalize_from_summary(assembler, summary, model="m1")
    assert c.text == "Hi there!"
    assert c.finish_reason == "length"
    assert c.usage == Usage(3, 2, 5)
    assert c.model == "m1-2024"
    assert [t.token for t in c.tokens] == ["Hi", " there"]


def test_summary_strategy_fills_gaps_from_accumulated_state():
    assembler = CompletionAssembler()
    _fill(assembler, [["x"]])
    c = finalize_from_summary(assembler, FinalSummary(), model="m1")
    assert c.text == "x" and c.finish_reason == "stop" and c.usage == Usage(0, 1, 1) and c.model == "m1"


def test_choose_finalizer_single_decision_point():
    assert choose_finalizer(None)[0] == ACCUMULATED_STRATEGY
    assert choose_finalizer(FinalSummary(text=""))[0] == SUMMARY_STRATEGY


def test_fetch_summary_absorbs_failures():
    class Broken:
        async def final_summary(self):
            raise RuntimeError("stream ended without final object")

    class Fine:
        async def final_summary(self):
            return FinalSummary(text="ok")

    assert asyncio.run(fetch_summary(Broken(), 1.0)) is None
    assert asyncio.run(fetch_summary(Fine(), 1.0)).text == "ok"
