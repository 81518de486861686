"""
UpstreamRequest: the fully prepared call handed to an upstream provider.

Built once per inbound request by ``request_build.build_upstream_request``;
its parameters are already clamped and its message list already carries any
synthetic force-prefix message.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .chat_message import ChatMessage
from .run_parameters import RunParameters


@dataclass(frozen=True)
class UpstreamRequest:
    """Model, messages and sampling parameters for one upstream call.

    Attributes:
        model: Upstream model identifier.
        messages: Outgoing message list (force prefix already appended).
        params: Clamped sampling parameters.
        force_prefix_echo: Prefix to echo back in the final completion.
    """

    model: str
    messages: List[ChatMessage]
    params: RunParameters = field(default_factory=RunParameters)
    force_prefix_echo: Optional[str] = None

    def to_api_params(self) -> Dict[str, Any]:
        """Return keyword arguments for ``chat.completions.create``."""
        p = self.params
        return {
            "model": self.model,
            "messages": [m.to_upstream() for m in self.messages],
            "temperature": p.temperature,
            "top_p": p.top_p,
            "presence_penalty": p.presence_penalty,
            "frequency_penalty": p.frequency_penalty,
            "max_tokens": p.max_tokens,
            "logprobs": True,
            "top_logprobs": p.top_logprobs,
        }


__all__ = ["UpstreamRequest"]
