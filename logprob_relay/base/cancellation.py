"""Cooperative cancellation primitives (public API facade).

``CancellationToken`` carries client-abort signals from the HTTP layer into
the streaming relay; ``CancelledError`` is raised by code that observes one.
Implementations live under ``cancellation_parts``.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError"]
