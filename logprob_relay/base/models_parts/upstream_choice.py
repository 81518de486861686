"""
UpstreamChoice: a normalized synchronous (non-streaming) upstream answer.

Adapters reduce ``choices[0]`` plus the response-level ``usage``/``model`` to
this shape; ``tokens`` are already boundary-normalized fragments.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .fragment import TokenFragment
from .usage import Usage


@dataclass(frozen=True)
class UpstreamChoice:
    """First choice of a non-streaming upstream response.

    Attributes:
        text: ``message.content`` (empty string when absent).
        tokens: Entries of ``logprobs.content`` in order (may be empty).
        finish_reason: Upstream finish reason, ``None`` when absent.
        usage: Response usage, ``None`` when absent.
        model: Model reported by the upstream, ``None`` when absent.
    """

    text: str = ""
    tokens: List[TokenFragment] = field(default_factory=list)
    finish_reason: Optional[str] = None
    usage: Optional[Usage] = None
    model: Optional[str] = None


__all__ = ["UpstreamChoice"]
