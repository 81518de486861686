"""Interfaces (Protocols) split into single-class modules."""

from .upstream_provider import UpstreamProvider
from .upstream_stream import UpstreamStream

__all__ = ["UpstreamProvider", "UpstreamStream"]
