"""
Error classification helpers mapping exceptions to normalized ErrorCode values.

Implements HTTP status extraction, status-to-code mapping and message-based
heuristics as a fallback so SDK exceptions of any shape can be logged and
reported consistently. Also owns the code-to-HTTP-status table used by the
service edge.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Optional

from .error_code import ErrorCode
from .relay_error import RelayError


def _extract_status(exc: Exception) -> Optional[int]:
    """Attempt to extract an HTTP status code from an upstream exception.

    Supported attribute shapes (checked in order):
    - ``exc.status_code``
    - ``exc.status``
    - ``exc.response.status_code``
    Returns ``None`` if no valid status can be found.
    """
    for attr in ("status_code", "status"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and 100 <= val < 600:
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


_HTTP_STATUS_MAP: Dict[int, ErrorCode] = {
    400: ErrorCode.UPSTREAM,
    401: ErrorCode.AUTH,
    403: ErrorCode.AUTH,
    404: ErrorCode.NOT_FOUND,
    408: ErrorCode.TIMEOUT,
    422: ErrorCode.UPSTREAM,
    429: ErrorCode.RATE_LIMIT,
    500: ErrorCode.UPSTREAM,
    502: ErrorCode.TRANSIENT,
    503: ErrorCode.UNAVAILABLE,
    504: ErrorCode.TIMEOUT,
}


# Status returned to relay clients per code. Upstream-originated codes all
# surface as 502 because the fault lies beyond the relay.
_CODE_TO_HTTP: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION: 400,
    ErrorCode.CONFIGURATION: 500,
    ErrorCode.LOGPROBS_UNAVAILABLE: 409,
    ErrorCode.INTERNAL: 500,
}


def _heuristic_from_message(msg: str) -> Optional[ErrorCode]:  # pragma: no cover - simple mapping
    """Substring heuristic mapping for non-HTTP exceptions."""
    pattern_groups = (
        (ErrorCode.RATE_LIMIT, ("rate limit",)),
        (ErrorCode.TIMEOUT, ("timeout", "timed out")),
        (ErrorCode.AUTH, ("unauthorized", "forbidden", "api key", "auth")),
        (ErrorCode.NOT_FOUND, ("not found", "does not exist")),
        (ErrorCode.UNAVAILABLE, ("unavailable", "temporarily down")),
        (ErrorCode.TRANSIENT, ("connection reset", "connection error", "eof")),
    )
    for code, patterns in pattern_groups:
        if any(p in msg for p in patterns):
            return code
    return None


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. RelayError passthrough.
        2. Timeout exceptions (sync/async).
        3. HTTP status mapping.
        4. Substring heuristics.
        5. ``UPSTREAM`` fallback (anything raised by an upstream call).
    """
    if isinstance(exc, RelayError):
        return exc.code
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return ErrorCode.TIMEOUT
    status = _extract_status(exc)  # type: ignore[arg-type]
    if status is not None and status in _HTTP_STATUS_MAP:
        return _HTTP_STATUS_MAP[status]
    code = _heuristic_from_message(str(exc).lower())
    return code if code is not None else ErrorCode.UPSTREAM


def status_for(code: ErrorCode) -> int:
    """Return the HTTP status the service edge uses for ``code``."""
    return _CODE_TO_HTTP.get(code, 502)


def as_relay_error(exc: BaseException, *, model: Optional[str] = None) -> RelayError:
    """Wrap any exception into a :class:`RelayError` (passthrough when already one)."""
    if isinstance(exc, RelayError):
        return exc
    code = classify_exception(exc)
    return RelayError(
        code=code,
        message=str(exc) or exc.__class__.__name__,
        model=model,
        retryable=code in (ErrorCode.TRANSIENT, ErrorCode.RATE_LIMIT, ErrorCode.TIMEOUT, ErrorCode.UNAVAILABLE),
        raw=exc if isinstance(exc, Exception) else None,
    )


__all__ = [
    "classify_exception",
    "status_for",
    "as_relay_error",
    "_extract_status",
    "_HTTP_STATUS_MAP",
]
