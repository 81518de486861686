"""Analysis helpers: exports, navigation, branching and summary stats."""
from __future__ import annotations

import json
import math

import pytest

from logprob_relay.analysis import (
    CSV_HEADER,
    branch_prefix,
    completion_to_csv,
    completion_to_json,
    find_next_low_confidence_index,
    is_punctuation_token,
    is_whitespace_token,
    summarize,
)
from logprob_relay.analysis.summary import finish_category, format_duration
from logprob_relay.base.codec import to_prob
from logprob_relay.base.models import Alt, CompletionLP, TokenLP


def _tok(i, text, logprob, alts=()):
    return TokenLP(i, text, logprob, to_prob(logprob), [Alt.of(t, lp) for t, lp in alts])


def _completion(*logprobs):
    return CompletionLP(text="", tokens=[_tok(i, f"t{i}", lp) for i, lp in enumerate(logprobs)], model="m1")


def test_csv_quotes_tokens_and_alternatives():
    c = CompletionLP(
        text='He said "hi",?',
        tokens=[
            _tok(0, 'He said "hi"', -0.5),
            _tok(1, ",", 0.0, [("x", -1.0)]),
            _tok(2, "?", float("-inf"), [("!", None)]),
        ],
    )
    rows = completion_to_csv(c).split("\n")
    assert rows[0] == CSV_HEADER
    assert rows[1] == f'0,"He said ""hi""",-0.5,{math.exp(-0.5)!r},"[]"'
    assert rows[2] == f'1,",",0,1,"[{{""token"":""x"",""logprob"":-1,""prob"":{math.exp(-1.0)!r}}}]"'
    assert rows[3] == '2,"?",,0,"[{""token"":""!"",""logprob"":null,""prob"":0}]"'


def test_json_export_is_wire_shape():
    c = CompletionLP(text="x", tokens=[_tok(0, "x", float("-inf"))], model="m1", latency=4)
    data = json.loads(completion_to_json(c))
    assert data["tokens"][0]["logprob"] is None
    assert data["latency"] == 4
    assert completion_to_json(c).startswith("{\n  ")


@pytest.mark.parametrize("token,expected", [(" ", True), ("\n\t", True), ("", False), (" a", False)])
def test_is_whitespace_token(token, expected):
    assert is_whitespace_token(token) is expected


@pytest.mark.parametrize("token,expected", [(",", True), (" ...", True), ("?!", True), ("", False), (" ", False), ("a.", False), ("«", False)])
def test_is_punctuation_token(token, expected):
    assert is_punctuation_token(token) is expected


def test_find_next_low_confidence_index():
    tokens = _completion(-0.1, -2.0, -0.1, -3.0, -0.1).tokens
    assert find_next_low_confidence_index(tokens, None, 1) == 1
    assert find_next_low_confidence_index(tokens, 1, 1) == 3
    assert find_next_low_confidence_index(tokens, 3, 1) is None
    assert find_next_low_confidence_index(tokens, None, -1) == 3
    assert find_next_low_confidence_index(tokens, 3, -1) == 1
    assert find_next_low_confidence_index(tokens, 1, -1) is None
    assert find_next_low_confidence_index(tokens, None, 1, threshold=0.01) is None
    assert find_next_low_confidence_index([], None, 1) is None


def test_branch_prefix():
    c = CompletionLP(text="The cat sat", tokens=[_tok(0, "The", -0.1), _tok(1, " cat", -1.0), _tok(2, " sat", -0.2)])
    assert branch_prefix(c, 1, " dog") == "The dog"
    assert branch_prefix(c, 0, "A") == "A"
    assert branch_prefix(c, 3, "!") == "The cat sat!"
    with pytest.raises(IndexError):
        branch_prefix(c, 4, "x")


def test_summarize():
    c = _completion(-0.1, -2.0, float("-inf"))
    c.finish_reason = "length"
    c.latency = 1250
    s = summarize(c)
    assert s.token_count == 3
    assert s.mean_logprob == pytest.approx(-1.05)
    assert s.perplexity == pytest.approx(math.exp(1.05))
    assert s.low_confidence == 2
    assert sum(s.classes.values()) == 3
    assert s.finish_category == "truncated"
    assert s.duration == "1.2s"
    assert s.to_dict()["token_count"] == 3


def test_summarize_empty_completion():
    s = summarize(CompletionLP(text=""))
    assert s.mean_logprob is None and s.perplexity is None and s.classes == {}


def test_finish_category_and_duration():
    assert finish_category("stop") == "success"
    assert finish_category("content_filter") == "filtered"
    assert finish_category(None) == "other"
    assert format_duration(850) == "850ms"
    assert format_duration(None) == ""


def test_summarize_near_impossible_token():
    s = summarize(_completion(-9999.0))
    assert s.mean_logprob == -9999.0
    assert s.perplexity == math.inf
    assert s.low_confidence == 1
