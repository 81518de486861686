"""
Usage: token accounting for a completion.

An all-zero ``Usage`` is the "unknown" sentinel the UI relies on; the
streaming fallback deliberately reports ``prompt_tokens=0`` rather than an
estimate.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class Usage:
    """Prompt/completion/total token counts."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def approximate(cls, completion_tokens: int) -> "Usage":
        """Best-effort usage from a token count alone (prompt side unknown)."""
        return cls(prompt_tokens=0, completion_tokens=completion_tokens, total_tokens=completion_tokens)

    @classmethod
    def from_upstream(cls, raw: Any) -> Optional["Usage"]:
        """Read an SDK usage object or mapping; ``None`` when absent."""
        if raw is None:
            return None
        get = raw.get if isinstance(raw, Mapping) else (lambda k: getattr(raw, k, None))
        prompt = int(get("prompt_tokens") or 0)
        completion = int(get("completion_tokens") or 0)
        total = get("total_tokens")
        return cls(prompt, completion, int(total) if total is not None else prompt + completion)

    def to_dict(self) -> Dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


__all__ = ["Usage"]
