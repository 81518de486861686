"""
Alt: one alternative candidate token at a completion position.

Also hosts the wire helpers for logprob floats: JSON has no ``-Infinity``,
so the unknown sentinel is written as ``null`` and read back as ``-inf``.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..codec.probability import normalize_logprob, to_prob


def wire_logprob(value: float) -> Optional[float]:
    """Return ``value`` for the wire, or ``None`` when it is not finite."""
    return value if math.isfinite(value) else None


def require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    """Return ``value`` when it is a JSON object, else raise ``ValueError``."""
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be an object, got {type(value).__name__}")
    return value


def parse_logprob(value: Any) -> float:
    """Read a wire logprob (``None`` → unknown sentinel)."""
    return normalize_logprob(None if value is None else float(value))


@dataclass(frozen=True)
class Alt:
    """Alternative token reported by the upstream at the same position.

    Attributes:
        token: Candidate text fragment.
        logprob: Natural-log probability (``-inf`` when unknown).
        prob: ``exp(logprob)``; ``0`` for the unknown sentinel.
    """

    token: str
    logprob: float
    prob: float

    @classmethod
    def of(cls, token: Optional[str], logprob: Optional[float]) -> "Alt":
        """Build an ``Alt`` from possibly-missing upstream fields."""
        lp = normalize_logprob(logprob)
        return cls(token=token or "", logprob=lp, prob=to_prob(lp))

    def to_dict(self) -> Dict[str, Any]:
        return {"token": self.token, "logprob": wire_logprob(self.logprob), "prob": self.prob}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Alt":
        data = require_mapping(data, "alternative")
        return cls.of(data.get("token"), parse_logprob(data.get("logprob")))


__all__ = ["Alt", "wire_logprob", "parse_logprob", "require_mapping"]
