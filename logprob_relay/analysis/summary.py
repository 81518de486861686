"""Per-completion statistics for analysis views."""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..base.codec import classify_tokens, is_unknown
from ..base.models import CompletionLP
from .navigation import LOW_CONFIDENCE_THRESHOLD

_FINISH_CATEGORIES = {
    "stop": "success",
    "end_turn": "success",
    "completed": "success",
    "length": "truncated",
    "max_completion_tokens": "truncated",
    "content_filter": "filtered",
    "tool_calls": "tool",
}


@dataclass(frozen=True)
class CompletionSummary:
    """Aggregate view of one completion.

    ``mean_logprob`` and ``perplexity`` only consider tokens with a known
    logprob and are ``None`` when there are none.
    """

    token_count: int
    mean_logprob: Optional[float]
    perplexity: Optional[float]
    low_confidence: int
    classes: Dict[str, int] = field(default_factory=dict)
    finish_category: str = "other"
    duration: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_count": self.token_count,
            "mean_logprob": self.mean_logprob,
            "perplexity": self.perplexity,
            "low_confidence": self.low_confidence,
            "classes": dict(self.classes),
            "finish_category": self.finish_category,
            "duration": self.duration,
        }


def finish_category(finish_reason: Optional[str]) -> str:
    return _FINISH_CATEGORIES.get((finish_reason or "").lower(), "other")


def format_duration(ms: Optional[int]) -> str:
    """``850ms`` below one second, else seconds with one decimal (``1.3s``)."""
    if ms is None:
        return ""
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.1f}s"


def _perplexity(mean: Optional[float]) -> Optional[float]:
    if mean is None:
        return None
    try:
        return math.exp(-mean)
    except OverflowError:
        # Upstreams report near-impossible tokens as -9999.
        return math.inf


def summarize(completion: CompletionLP, *, threshold: float = LOW_CONFIDENCE_THRESHOLD) -> CompletionSummary:
    known = [t.logprob for t in completion.tokens if not is_unknown(t.logprob)]
    mean = sum(known) / len(known) if known else None
    return CompletionSummary(
        token_count=len(completion.tokens),
        mean_logprob=mean,
        perplexity=_perplexity(mean),
        low_confidence=sum(1 for t in completion.tokens if t.prob < threshold),
        classes=dict(Counter(c.value for c in classify_tokens(completion.tokens))),
        finish_category=finish_category(completion.finish_reason),
        duration=format_duration(completion.latency),
    )


__all__ = ["CompletionSummary", "finish_category", "format_duration", "summarize"]
