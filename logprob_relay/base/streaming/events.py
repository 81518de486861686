"""NDJSON event protocol.

Three event kinds travel over a line-delimited JSON stream:

- ``delta``: incremental text, verbatim as received from upstream.
- ``logprobs``: one fully formed ``TokenLP``.
- ``done``: terminal event carrying a completion or an error string.

Producers write exactly one ``done`` as the last line. Consumers skip any
line that fails to parse (logged as ``ndjson.malformed``) instead of
aborting the session.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, ClassVar, Dict, Iterable, Iterator, Mapping, Optional, Union

from ..logging import get_logger, log_event
from ..models import CompletionLP, TokenLP

_logger = get_logger("streaming.events")


@dataclass(frozen=True)
class DeltaEvent:
    """Incremental completion text."""

    delta: str
    type: ClassVar[str] = "delta"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "delta": self.delta}


@dataclass(frozen=True)
class LogprobsEvent:
    """A single token with its probability data."""

    delta: TokenLP
    type: ClassVar[str] = "logprobs"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "delta": self.delta.to_dict()}


@dataclass(frozen=True)
class DoneEvent:
    """Terminal event: exactly one of ``completion`` / ``error`` is set."""

    completion: Optional[CompletionLP] = None
    error: Optional[str] = None
    type: ClassVar[str] = "done"

    def __post_init__(self) -> None:
        if (self.completion is None) == (self.error is None):
            raise ValueError("done event requires exactly one of completion or error")

    @property
    def ok(self) -> bool:
        return self.completion is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.completion is not None:
            return {"type": self.type, "completion": self.completion.to_dict()}
        return {"type": self.type, "error": self.error}


StreamEvent = Union[DeltaEvent, LogprobsEvent, DoneEvent]


def encode_event(event: StreamEvent) -> bytes:
    """Serialize ``event`` as one UTF-8 NDJSON line (trailing newline included)."""
    line = json.dumps(event.to_dict(), ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    return (line + "\n").encode("utf-8")


def event_from_dict(data: Mapping[str, Any]) -> StreamEvent:
    """Build a typed event from its decoded JSON object.

    Raises:
        ValueError: for unknown ``type`` values or a malformed ``done``.
    """
    kind = data.get("type")
    if kind == "delta":
        return DeltaEvent(delta=str(data.get("delta") or ""))
    if kind == "logprobs":
        payload = data.get("delta")
        if not isinstance(payload, Mapping):
            raise ValueError("logprobs event without token payload")
        return LogprobsEvent(delta=TokenLP.from_dict(payload))
    if kind == "done":
        completion = data.get("completion")
        error = data.get("error")
        if completion is not None and error is not None:
            raise ValueError("done event carries both completion and error")
        if completion is not None:
            return DoneEvent(completion=CompletionLP.from_dict(completion))
        # A bare done still terminates the session.
        return DoneEvent(error=str(error) if error is not None else "")
    raise ValueError(f"unknown event type: {kind!r}")


def decode_line(line: Union[str, bytes]) -> Optional[StreamEvent]:
    """Parse one NDJSON line; ``None`` for blank or malformed lines."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    text = line.strip()
    if not text:
        return None
    try:
        data = json.loads(text)
        if not isinstance(data, Mapping):
            raise ValueError("event is not a JSON object")
        return event_from_dict(data)
    except (ValueError, TypeError) as exc:
        log_event(
            _logger,
            "ndjson.malformed",
            level=logging.WARNING,
            error=str(exc)[:200],
            line=text[:200],
        )
        return None


def iter_events(lines: Iterable[Union[str, bytes]]) -> Iterator[StreamEvent]:
    """Yield events from ``lines``, skipping malformed ones."""
    for line in lines:
        event = decode_line(line)
        if event is not None:
            yield event


async def aiter_events(lines: AsyncIterable[Union[str, bytes]]) -> AsyncIterator[StreamEvent]:
    """Async counterpart of :func:`iter_events`."""
    async for line in lines:
        event = decode_line(line)
        if event is not None:
            yield event


__all__ = [
    "DeltaEvent",
    "LogprobsEvent",
    "DoneEvent",
    "StreamEvent",
    "encode_event",
    "event_from_dict",
    "decode_line",
    "iter_events",
    "aiter_events",
]
