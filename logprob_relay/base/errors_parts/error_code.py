"""
Normalized relay error codes (taxonomy).

Defines the `ErrorCode` enumeration used across the relay, the upstream
adapters and the HTTP edge. Values are lowercase snake_case and are considered
a stable public contract for logging and for the ``code`` field of error
bodies.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated normalized error codes representing failure categories."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    LOGPROBS_UNAVAILABLE = "logprobs_unavailable"
    UPSTREAM = "upstream"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    TRANSIENT = "transient"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


__all__ = ["ErrorCode"]
