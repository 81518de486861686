"""Unified relay error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``logprob_relay.base.errors_parts`` to maintain a stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.relay_error import RelayError
from .errors_parts.classification import as_relay_error, classify_exception, status_for

__all__ = ["ErrorCode", "RelayError", "classify_exception", "status_for", "as_relay_error"]
