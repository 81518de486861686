"""Probability codec package (logprob → probability and color class)."""

from .probability import (
    UNKNOWN_LOGPROB,
    ProbabilityClass,
    classify,
    classify_tokens,
    is_unknown,
    normalize_logprob,
    quantile_bounds,
    to_prob,
)

__all__ = [
    "UNKNOWN_LOGPROB",
    "ProbabilityClass",
    "classify",
    "classify_tokens",
    "is_unknown",
    "normalize_logprob",
    "quantile_bounds",
    "to_prob",
]
