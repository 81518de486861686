"""
ChatMessage: one turn of the conversation.

Messages are immutable once appended, except the trailing assistant message
that a streaming consumer grows in place (``append_text`` / ``append_token``)
until the ``done`` event arrives.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional

from .token_lp import TokenLP

Role = Literal["user", "assistant"]


@dataclass
class ChatMessage:
    """A conversation message, optionally decorated with its tokens."""

    role: Role
    content: str
    tokens: Optional[List[TokenLP]] = None

    def append_text(self, fragment: str) -> None:
        self.content += fragment

    def append_token(self, token: TokenLP) -> None:
        if self.tokens is None:
            self.tokens = []
        self.tokens.append(token)

    def to_upstream(self) -> Dict[str, str]:
        """Return the ``{role, content}`` shape sent to the upstream provider."""
        return {"role": self.role, "content": self.content}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = self.to_upstream()
        if self.tokens is not None:
            out["tokens"] = [t.to_dict() for t in self.tokens]
        return out


__all__ = ["ChatMessage", "Role"]
