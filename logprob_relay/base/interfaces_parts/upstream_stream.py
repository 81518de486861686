"""UpstreamStream Protocol (single-class module).

An open upstream streaming call seen as a pull-based async sequence.
"""

from __future__ import annotations

from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from ..models import FinalSummary, Fragment


@runtime_checkable
class UpstreamStream(Protocol):
    """Async iterator of normalized fragments plus end-of-stream queries.

    Implementations yield ``TextFragment``/``TokenFragment`` values in
    arrival order and raise on upstream failure. ``final_summary`` is only
    called after iteration finished cleanly; it returns ``None`` (or raises)
    when no structured final object is available. ``aclose`` releases the
    upstream connection and must be safe to call more than once.
    """

    def __aiter__(self) -> AsyncIterator[Fragment]:  # pragma: no cover - interface
        ...

    async def final_summary(self) -> Optional[FinalSummary]:  # pragma: no cover - interface
        ...

    async def aclose(self) -> None:  # pragma: no cover - interface
        ...
