"""
Pydantic DTOs for inbound completion requests.

Purpose
-------
Validate the JSON body of ``POST /complete`` and ``POST /complete/stream``
before anything is sent upstream: roles, a non-empty message list and the
inclusive numeric bounds of every sampling parameter.

External dependencies: Pydantic only (no network calls). No timeouts.

Fallback semantics: none. Validation either succeeds or raises
``pydantic.ValidationError``; the service edge turns that into a single JSON
error with HTTP 400 and never opens a stream.

Design
------
- Bounds here mirror ``base.constants``; ``to_run_parameters`` hands the
  values to ``RunParameters`` which re-clamps them before the upstream call.
- ``continuation_mode`` is optional; ``None`` means ``assistant-prefix``.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..constants import (
    DEFAULT_FREQUENCY_PENALTY,
    DEFAULT_MAX_TOKENS,
    DEFAULT_PRESENCE_PENALTY,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_LOGPROBS,
    DEFAULT_TOP_P,
    MAX_TOKENS_RANGE,
    PENALTY_RANGE,
    TEMPERATURE_RANGE,
    TOP_LOGPROBS_RANGE,
    TOP_P_RANGE,
)
from ..models import ChatMessage, RunParameters

Role = Literal["user", "assistant"]
ContinuationMode = Literal["assistant-prefix", "hint"]


class MessageDTO(BaseModel):
    """A conversation message as sent by the client.

    Token decorations the browser keeps on assistant messages are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    role: Role
    content: str

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class CompleteRequestDTO(BaseModel):
    """Validated completion request.

    Parameters:
        messages: Ordered conversation (at least one message).
        model: Upstream model identifier.
        temperature / top_p / presence_penalty / frequency_penalty: Sampling
            parameters within their inclusive ranges.
        max_tokens: Integer in ``[1, 256]``.
        top_logprobs: Integer in ``[1, 10]``.
        force_prefix: Optional text to continue from.
        continuation_mode: How ``force_prefix`` is applied.

    Raises:
        ValidationError: On unknown roles, an empty message list or
            out-of-range parameters.
    """

    model_config = ConfigDict(extra="ignore")

    messages: List[MessageDTO] = Field(..., min_length=1)
    model: str
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=TEMPERATURE_RANGE[0], le=TEMPERATURE_RANGE[1])
    top_p: float = Field(default=DEFAULT_TOP_P, ge=TOP_P_RANGE[0], le=TOP_P_RANGE[1])
    presence_penalty: float = Field(default=DEFAULT_PRESENCE_PENALTY, ge=PENALTY_RANGE[0], le=PENALTY_RANGE[1])
    frequency_penalty: float = Field(default=DEFAULT_FREQUENCY_PENALTY, ge=PENALTY_RANGE[0], le=PENALTY_RANGE[1])
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=MAX_TOKENS_RANGE[0], le=MAX_TOKENS_RANGE[1])
    top_logprobs: int = Field(default=DEFAULT_TOP_LOGPROBS, ge=TOP_LOGPROBS_RANGE[0], le=TOP_LOGPROBS_RANGE[1])
    force_prefix: Optional[str] = None
    continuation_mode: Optional[ContinuationMode] = None

    def to_run_parameters(self) -> RunParameters:
        """Return the sampling parameters, clamped."""
        return RunParameters(
            temperature=self.temperature,
            top_p=self.top_p,
            presence_penalty=self.presence_penalty,
            frequency_penalty=self.frequency_penalty,
            max_tokens=self.max_tokens,
            top_logprobs=self.top_logprobs,
        ).clamped()

    def to_messages(self) -> List[ChatMessage]:
        return [m.to_message() for m in self.messages]


__all__ = [
    "Role",
    "ContinuationMode",
    "MessageDTO",
    "CompleteRequestDTO",
]
