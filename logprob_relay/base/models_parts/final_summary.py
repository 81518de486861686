"""
FinalSummary: the structured end-of-stream object an upstream may expose.

Carries the authoritative text, finish reason, usage and model. It does not
carry per-token detail; the assembler keeps its own token list.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .usage import Usage


@dataclass(frozen=True)
class FinalSummary:
    """Authoritative completion metadata reported after the stream ends."""

    text: Optional[str] = None
    finish_reason: Optional[str] = None
    usage: Optional[Usage] = None
    model: Optional[str] = None


__all__ = ["FinalSummary"]
