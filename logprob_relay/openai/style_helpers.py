"""
Helper utilities translating OpenAI SDK objects into relay models.

Purpose:
- Keep SDK attribute access in one place so the adapter stays small.
- Map the non-streaming ``choices[0]`` and the stream helper's events and
  final completion onto ``UpstreamChoice``, fragments and ``FinalSummary``.

External dependencies:
- Operates on objects produced by the ``openai`` SDK (or look-alikes in
  tests); no network I/O happens here.

Fallback semantics:
- Missing attributes become ``None``/empty values; the boundary
  normalization in ``normalize_token_fragment`` fills token defaults.
"""

from __future__ import annotations

import typing as _t

from ..base.models import (
    FinalSummary,
    Fragment,
    TextFragment,
    UpstreamChoice,
    Usage,
    normalize_token_fragment,
)

CONTENT_DELTA = "content.delta"
LOGPROBS_CONTENT_DELTA = "logprobs.content.delta"


def _first_choice(resp: _t.Any) -> _t.Any:
    choices = getattr(resp, "choices", None) or []
    return choices[0] if choices else None


def extract_logprob_entries(choice: _t.Any) -> list:
    """Return ``choice.logprobs.content`` or an empty list."""
    logprobs = getattr(choice, "logprobs", None)
    return list(getattr(logprobs, "content", None) or [])


def choice_from_response(resp: _t.Any, *, top_logprobs: int | None = None) -> UpstreamChoice:
    """Reduce a ``ChatCompletion`` to an ``UpstreamChoice``.

    Parameters:
        resp: Non-streaming SDK response.
        top_logprobs: Cap on alternatives per token (requested value).
    """
    choice = _first_choice(resp)
    message = getattr(choice, "message", None)
    return UpstreamChoice(
        text=getattr(message, "content", None) or "",
        tokens=[normalize_token_fragment(e, limit=top_logprobs) for e in extract_logprob_entries(choice)],
        finish_reason=getattr(choice, "finish_reason", None),
        usage=Usage.from_upstream(getattr(resp, "usage", None)),
        model=getattr(resp, "model", None),
    )


def fragments_from_event(event: _t.Any, *, top_logprobs: int | None = None) -> _t.List[Fragment]:
    """Translate one stream-helper event into zero or more fragments.

    ``content.delta`` yields a ``TextFragment``; ``logprobs.content.delta``
    yields one ``TokenFragment`` per entry (upstream batches vary in size).
    Other event types carry nothing the relay forwards.
    """
    kind = getattr(event, "type", None)
    if kind == CONTENT_DELTA:
        delta = getattr(event, "delta", None)
        return [TextFragment(delta)] if delta else []
    if kind == LOGPROBS_CONTENT_DELTA:
        return [normalize_token_fragment(e, limit=top_logprobs) for e in getattr(event, "content", None) or []]
    return []


def summary_from_completion(completion: _t.Any) -> FinalSummary | None:
    """Build a ``FinalSummary`` from the helper's final completion object."""
    if completion is None:
        return None
    choice = _first_choice(completion)
    message = getattr(choice, "message", None)
    return FinalSummary(
        text=getattr(message, "content", None),
        finish_reason=getattr(choice, "finish_reason", None),
        usage=Usage.from_upstream(getattr(completion, "usage", None)),
        model=getattr(completion, "model", None),
    )


__all__ = [
    "CONTENT_DELTA",
    "LOGPROBS_CONTENT_DELTA",
    "choice_from_response",
    "extract_logprob_entries",
    "fragments_from_event",
    "summary_from_completion",
]
