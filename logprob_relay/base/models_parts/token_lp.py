"""
TokenLP: one emitted token decorated with its probability and alternatives.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .alt import Alt, parse_logprob, require_mapping, wire_logprob
from ..codec.probability import to_prob


@dataclass(frozen=True)
class TokenLP:
    """A single completion token.

    Attributes:
        index: Zero-based position in the completion, contiguous in emission order.
        token: Exact text fragment (may carry leading whitespace).
        logprob: Natural-log probability, ``-inf`` when unknown.
        prob: ``exp(logprob)`` or ``0`` for the unknown sentinel.
        top_logprobs: Alternatives in upstream rank order.
    """

    index: int
    token: str
    logprob: float
    prob: float
    top_logprobs: List[Alt] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "token": self.token,
            "logprob": wire_logprob(self.logprob),
            "prob": self.prob,
            "top_logprobs": [a.to_dict() for a in self.top_logprobs],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TokenLP":
        data = require_mapping(data, "token")
        logprob = parse_logprob(data.get("logprob"))
        return cls(
            index=int(data.get("index", 0)),
            token=str(data.get("token") or ""),
            logprob=logprob,
            prob=to_prob(logprob),
            top_logprobs=[Alt.from_dict(a) for a in data.get("top_logprobs") or []],
        )


__all__ = ["TokenLP"]
