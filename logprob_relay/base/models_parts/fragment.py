"""
Upstream fragments: the tagged variants the relay consumes.

Upstream SDKs deliver loosely shaped objects (attributes or mapping keys,
any of which may be missing). ``normalize_token_fragment`` is the single
boundary where that optionality is resolved; everything past it works with
fully populated ``TextFragment`` / ``TokenFragment`` values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from .alt import Alt
from ..codec.probability import normalize_logprob, to_prob


@dataclass(frozen=True)
class TextFragment:
    """Incremental completion text."""

    text: str


@dataclass(frozen=True)
class TokenFragment:
    """One token with its logprob and ranked alternatives (no index yet)."""

    token: str
    logprob: float
    top_logprobs: Tuple[Alt, ...] = field(default_factory=tuple)

    @property
    def prob(self) -> float:
        return to_prob(self.logprob)


Fragment = Union[TextFragment, TokenFragment]


def _field(raw: Any, name: str) -> Any:
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def _as_logprob(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_token_fragment(raw: Any, *, limit: Optional[int] = None) -> TokenFragment:
    """Build a ``TokenFragment`` from an SDK object or mapping.

    Missing ``token`` becomes ``""``; a missing or unparsable ``logprob``
    becomes the unknown sentinel. Alternatives are mapped the same way and
    truncated to ``limit`` when given.
    """
    alts_raw = _field(raw, "top_logprobs") or ()
    alts = tuple(
        Alt.of(_field(a, "token"), _as_logprob(_field(a, "logprob")))
        for a in alts_raw
    )
    if limit is not None:
        alts = alts[:limit]
    return TokenFragment(
        token=_field(raw, "token") or "",
        logprob=normalize_logprob(_as_logprob(_field(raw, "logprob"))),
        top_logprobs=alts,
    )


__all__ = [
    "Fragment",
    "TextFragment",
    "TokenFragment",
    "normalize_token_fragment",
]
