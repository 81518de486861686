"""Streaming package: event protocol, assembler, finalization and relay.

Public surface is re-exported here; implementation modules stay small and
single-purpose.
"""

from .assembler import CompletionAssembler
from .bridge import FragmentBridge
from .events import (
    DeltaEvent,
    DoneEvent,
    LogprobsEvent,
    StreamEvent,
    aiter_events,
    decode_line,
    encode_event,
    event_from_dict,
    iter_events,
)
from .finalize import choose_finalizer, fetch_summary, finalize_from_accumulated, finalize_from_summary
from .relay import RelayState, StreamingRelay
from .streaming_metrics import StreamMetrics

__all__ = [
    "CompletionAssembler",
    "DeltaEvent",
    "DoneEvent",
    "FragmentBridge",
    "LogprobsEvent",
    "RelayState",
    "StreamEvent",
    "StreamMetrics",
    "StreamingRelay",
    "aiter_events",
    "choose_finalizer",
    "decode_line",
    "encode_event",
    "event_from_dict",
    "fetch_summary",
    "finalize_from_accumulated",
    "finalize_from_summary",
    "iter_events",
]
