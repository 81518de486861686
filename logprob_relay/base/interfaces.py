"""Upstream provider interfaces (stable import path).

Re-exports the Protocols defined under ``base.interfaces_parts``.
"""

from .interfaces_parts import UpstreamProvider, UpstreamStream

__all__ = ["UpstreamProvider", "UpstreamStream"]
