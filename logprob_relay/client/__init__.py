"""Python consumer helpers for the relay HTTP API."""

from .transcript import TranscriptBuilder
from .transport import DEFAULT_API_BASE, EventStream, RestTransport, StreamTransport, build_body

__all__ = [
    "DEFAULT_API_BASE",
    "EventStream",
    "RestTransport",
    "StreamTransport",
    "TranscriptBuilder",
    "build_body",
]
