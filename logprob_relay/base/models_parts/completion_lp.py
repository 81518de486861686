"""
CompletionLP: the finalized result of one generation.

``text`` equals the concatenation of the token texts when tokens are complete.
A completion with populated ``text`` and empty ``tokens`` is an allowed
degraded result (the upstream stream delivered no token-level data).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .alt import require_mapping
from .token_lp import TokenLP
from .usage import Usage


@dataclass
class CompletionLP:
    """Finalized completion with per-token probability data.

    Attributes:
        text: Full completion text.
        tokens: Ordered tokens (possibly empty, see module docstring).
        finish_reason: Upstream finish reason (``stop``, ``length``, ...).
        usage: Token accounting.
        model: Model that produced the completion.
        latency: Wall-clock milliseconds from request receipt to finalization.
        force_prefix_echo: The forced assistant prefix, when one was injected.
    """

    text: str
    tokens: List[TokenLP] = field(default_factory=list)
    finish_reason: str = "stop"
    usage: Usage = field(default_factory=Usage)
    model: str = ""
    latency: Optional[int] = None
    force_prefix_echo: Optional[str] = None

    @property
    def token_text(self) -> str:
        """Concatenation of the token texts."""
        return "".join(t.token for t in self.tokens)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "text": self.text,
            "tokens": [t.to_dict() for t in self.tokens],
            "finish_reason": self.finish_reason,
            "usage": self.usage.to_dict(),
            "model": self.model,
            "latency": self.latency,
        }
        if self.force_prefix_echo is not None:
            out["force_prefix_echo"] = self.force_prefix_echo
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompletionLP":
        data = require_mapping(data, "completion")
        return cls(
            text=str(data.get("text") or ""),
            tokens=[TokenLP.from_dict(t) for t in data.get("tokens") or []],
            finish_reason=str(data.get("finish_reason") or "unknown"),
            usage=Usage.from_upstream(data.get("usage")) or Usage(),
            model=str(data.get("model") or ""),
            latency=data.get("latency"),
            force_prefix_echo=data.get("force_prefix_echo"),
        )


__all__ = ["CompletionLP"]
