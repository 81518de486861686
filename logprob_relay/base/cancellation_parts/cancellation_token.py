"""Abort signal shared between the HTTP layer and the streaming relay.

The service creates one ``CancellationToken`` per streaming request and hands
it to ``StreamingRelay``. A client disconnect (or an explicit ``cancel``)
flips the token once; the relay notices either by polling
``raise_if_cancelled`` between fragments or through an ``on_cancel``
callback, which is how a pending upstream read gets interrupted.
"""

from __future__ import annotations

from contextlib import suppress
from threading import Lock
from typing import Callable, List, Optional

from .cancelled_error import CancelledError

AbortCallback = Callable[[Optional[str]], None]


class CancellationToken:
    """One-shot abort flag with an optional reason and abort callbacks."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._cancelled = False
        self._reason: Optional[str] = None
        self._callbacks: List[AbortCallback] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        """Reason given by the first ``cancel`` call, if any."""
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Flip the token and run the registered callbacks.

        Only the first call has an effect; its reason is kept.
        """
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            # Remaining callbacks still run when one fails.
            with suppress(Exception):
                cb(reason)

    def on_cancel(self, callback: AbortCallback) -> None:
        """Register ``callback(reason)``; runs immediately if already cancelled."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return
            reason = self._reason
        with suppress(Exception):
            callback(reason)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancelledError(self._reason or "client aborted")

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"CancellationToken(cancelled={self._cancelled}, reason={self._reason!r})"


__all__ = ["AbortCallback", "CancellationToken"]
