from __future__ import annotations

import pytest
from pydantic import ValidationError

from logprob_relay.base.dto import CompleteRequestDTO
from logprob_relay.base.request_build import apply_force_prefix, build_upstream_request


def _body(**kw):
    data = {"messages": [{"role": "user", "content": "Say hi"}], "model": "m1"}
    data.update(kw)
    return data


def test_defaults():
    dto = CompleteRequestDTO.model_validate(_body())
    params = dto.to_run_parameters()
    assert params.temperature == 0.7
    assert params.max_tokens == 128
    assert params.top_logprobs == 5


def test_upper_bounds_are_inclusive():
    dto = CompleteRequestDTO.model_validate(_body(max_tokens=256, top_logprobs=10))
    assert dto.max_tokens == 256 and dto.top_logprobs == 10


@pytest.mark.parametrize(
    "field,value",
    [
        ("max_tokens", 257),
        ("max_tokens", 0),
        ("top_logprobs", 11),
        ("top_logprobs", 0),
        ("temperature", 2.5),
        ("top_p", 1.5),
        ("presence_penalty", -2.5),
        ("frequency_penalty", 2.1),
    ],
)
def test_out_of_range_rejected(field, value):
    with pytest.raises(ValidationError):
        CompleteRequestDTO.model_validate(_body(**{field: value}))


def test_empty_messages_and_unknown_role_rejected():
    with pytest.raises(ValidationError):
        CompleteRequestDTO.model_validate(_body(messages=[]))
    with pytest.raises(ValidationError):
        CompleteRequestDTO.model_validate(_body(messages=[{"role": "system", "content": "x"}]))
    with pytest.raises(ValidationError):
        CompleteRequestDTO.model_validate(_body(continuation_mode="rewrite"))


def test_token_decorations_on_messages_are_ignored():
    dto = CompleteRequestDTO.model_validate(
        _body(messages=[{"role": "assistant", "content": "x", "tokens": [{"index": 0}]}])
    )
    assert dto.to_messages()[0].tokens is None


def test_force_prefix_appends_assistant_message_and_echoes():
    req = build_upstream_request(CompleteRequestDTO.model_validate(_body(force_prefix="The answer")))
    assert [m.role for m in req.messages] == ["user", "assistant"]
    assert req.messages[-1].content == "The answer"
    assert req.force_prefix_echo == "The answer"


def test_explicit_assistant_prefix_mode_matches_default():
    req = build_upstream_request(
        CompleteRequestDTO.model_validate(_body(force_prefix="X", continuation_mode="assistant-prefix"))
    )
    assert req.force_prefix_echo == "X"
    assert len(req.messages) == 2


def test_hint_mode_is_a_no_op():
    req = build_upstream_request(CompleteRequestDTO.model_validate(_body(force_prefix="X", continuation_mode="hint")))
    assert len(req.messages) == 1
    assert req.force_prefix_echo is None


def test_empty_prefix_is_ignored():
    messages = []
    assert apply_force_prefix(messages, "", None) is None
    assert messages == []
