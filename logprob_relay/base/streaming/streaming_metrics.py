"""Streaming metrics data structures.

Isolated within the streaming package to keep the relay loop small.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class StreamMetrics:
    """Collected metrics for a single relay session.

    ``deltas`` and ``tokens`` count forwarded events by kind; durations are
    milliseconds measured from ``started_at`` (``time.perf_counter``).
    """

    started_at: float = field(default_factory=lambda: time.perf_counter())
    deltas: int = 0
    tokens: int = 0
    time_to_first_event_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None

    @property
    def emitted(self) -> int:
        return self.deltas + self.tokens

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000.0

    def record(self, kind: str) -> None:
        """Count one forwarded event of ``kind`` (``delta`` or ``logprobs``)."""
        if self.time_to_first_event_ms is None:
            self.time_to_first_event_ms = self.elapsed_ms()
        if kind == "delta":
            self.deltas += 1
        else:
            self.tokens += 1

    def close(self) -> None:
        if self.total_duration_ms is None:
            self.total_duration_ms = self.elapsed_ms()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deltas": self.deltas,
            "tokens": self.tokens,
            "time_to_first_event_ms": self.time_to_first_event_ms,
            "total_duration_ms": self.total_duration_ms,
        }


__all__ = ["StreamMetrics"]
