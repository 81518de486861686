"""UpstreamProvider Protocol (single-class module).

Defines the minimal contract between the relay and an LLM provider adapter.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import UpstreamChoice, UpstreamRequest
from .upstream_stream import UpstreamStream


@runtime_checkable
class UpstreamProvider(Protocol):
    """Interface for upstream adapters.

    Implementations map ``UpstreamRequest`` onto their SDK call (always with
    ``logprobs`` enabled), normalize results into relay models and never leak
    SDK objects past the adapter. Errors propagate as exceptions; callers
    classify them.
    """

    @property
    def provider_name(self) -> str:
        """Canonical provider identifier, e.g. ``"openai"`` or ``"mock"``."""
        ...

    async def complete(self, request: UpstreamRequest) -> UpstreamChoice:
        """Execute one non-streaming completion with inline logprobs."""
        ...

    async def open_stream(self, request: UpstreamRequest) -> UpstreamStream:
        """Open a streaming completion; returns once the upstream accepted it."""
        ...
