"""OpenAI upstream adapter package."""

from .client import OpenAIStream, OpenAIUpstream

__all__ = ["OpenAIStream", "OpenAIUpstream"]
