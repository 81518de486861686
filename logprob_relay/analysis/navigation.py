"""Token navigation and branching helpers.

Used by consumers to step between low-confidence tokens and to build the
prefix for resubmitting a completion from a chosen alternative.
"""
from __future__ import annotations

import re
import string
from typing import Optional, Sequence

from ..base.models import CompletionLP, TokenLP

_WS = re.compile(r"\s+")
_PUNCT = frozenset(string.punctuation)

LOW_CONFIDENCE_THRESHOLD = 0.5


def is_whitespace_token(token: str) -> bool:
    """True when ``token`` is non-empty and entirely whitespace."""
    return bool(token) and token.isspace()


def is_punctuation_token(token: str) -> bool:
    """True when ``token`` (ignoring whitespace) is only ASCII punctuation."""
    trimmed = _WS.sub("", token)
    return bool(trimmed) and all(ch in _PUNCT for ch in trimmed)


def find_next_low_confidence_index(
    tokens: Sequence[TokenLP],
    start_index: Optional[int],
    direction: int,
    threshold: float = LOW_CONFIDENCE_THRESHOLD,
) -> Optional[int]:
    """Index of the next token with ``prob < threshold``, or ``None``.

    ``direction`` is ``1`` (forward) or ``-1`` (backward). Without a
    ``start_index`` the search starts at the first (or last) token;
    otherwise it starts one step past ``start_index``.
    """
    if not tokens:
        return None
    step = 1 if direction > 0 else -1
    if start_index is None:
        i = 0 if step > 0 else len(tokens) - 1
    else:
        i = start_index + step
    while 0 <= i < len(tokens):
        if tokens[i].prob < threshold:
            return i
        i += step
    return None


def branch_prefix(completion: CompletionLP, index: int, new_token: str) -> str:
    """Text of tokens before ``index`` followed by ``new_token``.

    The result is sent back as ``force_prefix`` to explore the branch the
    model almost took at ``index``.

    Raises:
        IndexError: when ``index`` is outside ``[0, len(tokens)]``.
    """
    if index < 0 or index > len(completion.tokens):
        raise IndexError(f"token index {index} out of range")
    return "".join(t.token for t in completion.tokens[:index]) + new_token


__all__ = [
    "LOW_CONFIDENCE_THRESHOLD",
    "branch_prefix",
    "find_next_low_confidence_index",
    "is_punctuation_token",
    "is_whitespace_token",
]
