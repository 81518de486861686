"""
RunParameters: sampling configuration and its clamping rules.

The server clamps every field into range even when the client already did;
``clamped()`` is idempotent, so applying it to in-range values is a no-op.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping

from ..constants import (
    DEFAULT_FREQUENCY_PENALTY,
    DEFAULT_MAX_TOKENS,
    DEFAULT_PRESENCE_PENALTY,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_LOGPROBS,
    DEFAULT_TOP_P,
    MAX_TOKENS_RANGE,
    PENALTY_RANGE,
    TEMPERATURE_RANGE,
    TOP_LOGPROBS_RANGE,
    TOP_P_RANGE,
)

PRESETS: Mapping[str, Mapping[str, float]] = {
    "deterministic": {"temperature": 0.0, "top_p": 1.0},
    "creative": {"temperature": 1.2, "top_p": 1.0},
}


def clamp(value, lo, hi):
    """Clamp ``value`` into ``[lo, hi]``."""
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class RunParameters:
    """Sampling parameters forwarded to the upstream provider."""

    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    presence_penalty: float = DEFAULT_PRESENCE_PENALTY
    frequency_penalty: float = DEFAULT_FREQUENCY_PENALTY
    max_tokens: int = DEFAULT_MAX_TOKENS
    top_logprobs: int = DEFAULT_TOP_LOGPROBS

    def clamped(self) -> "RunParameters":
        """Return a copy with every field forced into its valid range."""
        return RunParameters(
            temperature=float(clamp(self.temperature, *TEMPERATURE_RANGE)),
            top_p=float(clamp(self.top_p, *TOP_P_RANGE)),
            presence_penalty=float(clamp(self.presence_penalty, *PENALTY_RANGE)),
            frequency_penalty=float(clamp(self.frequency_penalty, *PENALTY_RANGE)),
            max_tokens=int(clamp(int(self.max_tokens), *MAX_TOKENS_RANGE)),
            top_logprobs=int(clamp(int(self.top_logprobs), *TOP_LOGPROBS_RANGE)),
        )

    def with_preset(self, name: str) -> "RunParameters":
        """Apply a named preset (``deterministic`` or ``creative``).

        Raises:
            KeyError: for an unknown preset name.
        """
        return replace(self, **PRESETS[name.lower()])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RunParameters":
        """Build from a mapping, ignoring unknown keys and keeping defaults for missing ones."""
        known = {k: data[k] for k in cls.__dataclass_fields__ if data.get(k) is not None}
        return cls(**known)


__all__ = ["RunParameters", "PRESETS", "clamp"]
