"""Pydantic request DTOs validated at the service edge."""

from .completion import CompleteRequestDTO, ContinuationMode, MessageDTO

__all__ = ["CompleteRequestDTO", "ContinuationMode", "MessageDTO"]
