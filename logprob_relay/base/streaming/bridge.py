"""Push-to-pull fragment bridge.

Adapts callback-style producers (``push`` per fragment, then ``finish`` or
``fail``) into an async iterator the relay can pull from in order. The
buffer is unbounded; a producer never blocks on a slow consumer.
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, Generic, Optional, TypeVar

T = TypeVar("T")

_END = object()


class FragmentBridge(Generic[T]):
    """Ordered queue between a push-based source and an async consumer.

    ``push``/``finish``/``fail`` are synchronous and must be called from the
    event loop thread (use ``loop.call_soon_threadsafe`` from other threads).
    Calls after the bridge was finished or closed are ignored.
    """

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[object]" = asyncio.Queue()
        self._finished = False
        self._error: Optional[BaseException] = None

    @property
    def finished(self) -> bool:
        return self._finished

    def push(self, item: T) -> None:
        if not self._finished:
            self._queue.put_nowait(item)

    def finish(self) -> None:
        """Mark end-of-stream after everything already pushed."""
        if not self._finished:
            self._finished = True
            self._queue.put_nowait(_END)

    def fail(self, exc: BaseException) -> None:
        """End the stream with ``exc``, raised to the consumer after buffered items."""
        if not self._finished:
            self._error = exc
            self.finish()

    def close(self) -> None:
        """Stop the stream now, dropping anything still buffered."""
        while not self._queue.empty():
            self._queue.get_nowait()
        self._finished = True
        self._queue.put_nowait(_END)

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        item = await self._queue.get()
        if item is _END:
            # Keep the sentinel for repeated reads after exhaustion.
            self._queue.put_nowait(_END)
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


__all__ = ["FragmentBridge"]
