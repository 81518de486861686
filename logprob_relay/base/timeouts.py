"""Unified timeout configuration for the relay.

Key Components
--------------
TimeoutConfig
    Frozen dataclass with normalized timeout values (seconds).

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use (and again only if the overriding variables change):
        LOGPROB_RELAY_START_TIMEOUT_SECONDS
        LOGPROB_RELAY_STREAM_IDLE_TIMEOUT_SECONDS
        LOGPROB_RELAY_HTTP_TIMEOUT_SECONDS

with_timeout(awaitable, seconds)
    Await ``awaitable`` under a wall-clock deadline; ``seconds <= 0`` or
    ``None`` disables the guard.

Scope
-----
Only the upstream open phase and the wait for each next fragment are guarded.
No overall deadline is applied to a whole streaming session.

Failure Modes
-------------
``TimeoutError`` is raised when the deadline elapses; the caller classifies
it as ``ErrorCode.TIMEOUT``.
"""
from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        start_timeout_seconds: Deadline for opening the upstream stream or
            for a whole non-streaming upstream call.
        stream_idle_timeout_seconds: Maximum wait for the next upstream
            fragment while streaming.
        http_timeout_seconds: Timeout used by the Python client transports.
    """

    start_timeout_seconds: float = 30.0
    stream_idle_timeout_seconds: float = 60.0
    http_timeout_seconds: float = 60.0


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None
_ENV_NAMES = (
    "LOGPROB_RELAY_START_TIMEOUT_SECONDS",
    "LOGPROB_RELAY_STREAM_IDLE_TIMEOUT_SECONDS",
    "LOGPROB_RELAY_HTTP_TIMEOUT_SECONDS",
)


def _parse_env_float(name: str, default: float) -> float:
    """Parse a positive float from the environment, else return ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached :class:`TimeoutConfig`."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(os.getenv(n, "") for n in _ENV_NAMES)
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED
    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        start_timeout_seconds=_parse_env_float(_ENV_NAMES[0], defaults.start_timeout_seconds),
        stream_idle_timeout_seconds=_parse_env_float(_ENV_NAMES[1], defaults.stream_idle_timeout_seconds),
        http_timeout_seconds=_parse_env_float(_ENV_NAMES[2], defaults.http_timeout_seconds),
    )
    _ENV_GUARD = guard
    return _CACHED


async def with_timeout(awaitable: Awaitable[T], seconds: Optional[float]) -> T:
    """Await ``awaitable`` under a deadline of ``seconds``.

    Raises:
        TimeoutError: when the deadline elapses (``asyncio.TimeoutError`` is
            an alias of ``TimeoutError`` on supported interpreters).
    """
    if not seconds or seconds <= 0:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=seconds)


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
    "with_timeout",
]
