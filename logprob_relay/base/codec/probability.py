"""Probability codec: log-probability to display probability and color class.

Purpose
-------
Pure functions shared by the streaming assembler, the non-streaming path and
the analysis helpers:

- ``to_prob`` converts an upstream logprob into ``exp(logprob)``.
- ``quantile_bounds`` derives the per-completion ``[lo, hi]`` window from the
  5th/95th percentile of the token set, clamped to ``[-20, 0]``.
- ``classify`` buckets a logprob into one of four quartile classes relative
  to that window so coloring stays comparable across completions.

The unknown sentinel is ``-inf`` (``UNKNOWN_LOGPROB``); ``None`` and NaN are
treated the same way. None of these functions raise.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

UNKNOWN_LOGPROB = float("-inf")

QUANTILE_LOW = 0.05
QUANTILE_HIGH = 0.95
HARD_MIN_LOGPROB = -20.0
HARD_MAX_LOGPROB = 0.0
EMPTY_BOUNDS = (-10.0, 0.0)


class ProbabilityClass(str, Enum):
    """Quartile class of a token relative to its completion's logprob window."""

    LOW = "low"
    MED_LOW = "med-low"
    MED_HIGH = "med-high"
    HIGH = "high"


class _HasLogprob(Protocol):
    logprob: float


def is_unknown(logprob: Optional[float]) -> bool:
    """Return True for the unknown sentinel (``None``, ``-inf`` or NaN)."""
    return logprob is None or math.isnan(logprob) or logprob == UNKNOWN_LOGPROB


def normalize_logprob(logprob: Optional[float]) -> float:
    """Map any unknown representation onto ``UNKNOWN_LOGPROB``."""
    return UNKNOWN_LOGPROB if is_unknown(logprob) else float(logprob)  # type: ignore[arg-type]


def to_prob(logprob: Optional[float]) -> float:
    """Return ``exp(logprob)``, or ``0.0`` for the unknown sentinel."""
    if is_unknown(logprob):
        return 0.0
    try:
        return math.exp(logprob)  # type: ignore[arg-type]
    except OverflowError:
        # Positive logprobs are malformed upstream data; cap at certainty.
        return 1.0


def _quantile(sorted_values: Sequence[float], p: float, default: float) -> float:
    if not sorted_values:
        return default
    idx = math.floor(len(sorted_values) * p)
    return sorted_values[min(max(idx, 0), len(sorted_values) - 1)]


def quantile_bounds(logprobs: Iterable[float]) -> Tuple[float, float]:
    """Return ``(lo, hi)`` for a set of logprobs.

    ``lo`` is the 5th percentile floored at -20, ``hi`` the 95th percentile
    capped at 0. An empty set yields ``(-10, 0)``.
    """
    values = sorted(float(v) for v in logprobs)
    if not values:
        return EMPTY_BOUNDS
    q05 = _quantile(values, QUANTILE_LOW, EMPTY_BOUNDS[0])
    q95 = _quantile(values, QUANTILE_HIGH, EMPTY_BOUNDS[1])
    return max(q05, HARD_MIN_LOGPROB), min(q95, HARD_MAX_LOGPROB)


def classify(logprob: float, lo: float, hi: float) -> ProbabilityClass:
    """Bucket ``logprob`` into a quartile class of the ``[lo, hi]`` window."""
    denom = (hi - lo) or 1.0
    normalized = (logprob - lo) / denom
    if normalized < 0.25:
        return ProbabilityClass.LOW
    if normalized < 0.5:
        return ProbabilityClass.MED_LOW
    if normalized < 0.75:
        return ProbabilityClass.MED_HIGH
    return ProbabilityClass.HIGH


def classify_tokens(tokens: Sequence[_HasLogprob]) -> List[ProbabilityClass]:
    """Classify every token against the bounds of the whole token set."""
    lo, hi = quantile_bounds(t.logprob for t in tokens)
    return [classify(t.logprob, lo, hi) for t in tokens]


__all__ = [
    "UNKNOWN_LOGPROB",
    "ProbabilityClass",
    "is_unknown",
    "normalize_logprob",
    "to_prob",
    "quantile_bounds",
    "classify",
    "classify_tokens",
]
