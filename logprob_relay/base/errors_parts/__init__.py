"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `logprob_relay.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .relay_error import RelayError
from .classification import as_relay_error, classify_exception, status_for

__all__ = ["ErrorCode", "RelayError", "classify_exception", "status_for", "as_relay_error"]
