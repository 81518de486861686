"""
Structured relay error exception type.

Wraps validation, configuration and upstream failures with a normalized
`ErrorCode` so the HTTP edge can translate every failure in one place and the
streaming path can fold them into a terminal ``done`` event.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .error_code import ErrorCode


@dataclass
class RelayError(Exception):
    """Represents a structured relay error with a normalized error code.

    Attributes:
        code: Normalized :class:`ErrorCode` classification for the failure.
        message: Human-readable error message, safe to return to clients.
        model: Optional model name associated with the failure.
        retryable: Hint for callers (the UI presents retryable notices).
        raw: Optional original exception for diagnostics.
        details: Optional JSON-serializable payload (e.g. validation issues).
    """

    code: ErrorCode
    message: str
    model: Optional[str] = None
    retryable: bool = False
    raw: Optional[Exception] = None
    details: Any = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.model or '-'} {self.code.value}: {self.message}"

    def terminal_text(self) -> str:
        """Return the ``<code>:<message>`` form carried by ``done`` events."""
        return f"{self.code.value}:{self.message[:260]}"


__all__ = ["RelayError"]
