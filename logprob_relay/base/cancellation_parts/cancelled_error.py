"""Cancellation error type.

Defines the public ``CancelledError`` raised when a relay observes that its
client has gone away. Kept separate from ``asyncio.CancelledError`` so task
cancellation and client aborts can be told apart in logs.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when a relay is cancelled cooperatively.

    Cancellation is not a failure state: callers stop producing events and
    release upstream resources without reporting an error to the client.
    """

__all__ = ["CancelledError"]
