"""Conversation bookkeeping for relay consumers.

``TranscriptBuilder`` keeps the message list a chat front end would render.
While a stream is active the trailing assistant message is grown in place
by ``delta`` and ``logprobs`` events; ``done`` replaces its content with the
final text. On ``done{error}`` or an abort the partial text stays.
"""
from __future__ import annotations

from typing import AsyncIterable, Dict, List, Optional

from ..base.models import ChatMessage, CompletionLP
from ..base.streaming import DeltaEvent, DoneEvent, LogprobsEvent, StreamEvent


class TranscriptBuilder:
    def __init__(self, messages: Optional[List[ChatMessage]] = None) -> None:
        self.messages: List[ChatMessage] = list(messages or [])
        self.completion: Optional[CompletionLP] = None
        self.error: Optional[str] = None
        self.done = False

    def add_user(self, content: str) -> ChatMessage:
        msg = ChatMessage(role="user", content=content)
        self.messages.append(msg)
        return msg

    def request_messages(self) -> List[Dict[str, str]]:
        """``{role, content}`` for every message, as sent to ``/complete``."""
        return [m.to_upstream() for m in self.messages]

    def begin_assistant(self) -> ChatMessage:
        """Append the empty assistant message that streamed events fill in."""
        self.completion = None
        self.error = None
        self.done = False
        msg = ChatMessage(role="assistant", content="")
        self.messages.append(msg)
        return msg

    @property
    def current(self) -> ChatMessage:
        if not self.messages or self.messages[-1].role != "assistant":
            raise RuntimeError("no assistant message in progress")
        return self.messages[-1]

    def apply(self, event: StreamEvent) -> None:
        if self.done:
            return
        msg = self.current
        if isinstance(event, DeltaEvent):
            msg.append_text(event.delta)
        elif isinstance(event, LogprobsEvent):
            msg.append_token(event.delta)
        elif isinstance(event, DoneEvent):
            self.done = True
            if event.completion is not None:
                self.completion = event.completion
                msg.content = event.completion.text
                msg.tokens = list(event.completion.tokens)
            else:
                self.error = event.error
                msg.tokens = None

    def apply_completion(self, completion: CompletionLP) -> ChatMessage:
        """Record a non-streamed completion as a new assistant message."""
        msg = ChatMessage(role="assistant", content=completion.text, tokens=list(completion.tokens))
        self.messages.append(msg)
        self.completion = completion
        self.error = None
        self.done = True
        return msg

    async def consume(self, events: AsyncIterable[StreamEvent]) -> Optional[CompletionLP]:
        """Start an assistant message and apply ``events`` until ``done``."""
        self.begin_assistant()
        async for event in events:
            self.apply(event)
            if self.done:
                break
        return self.completion


__all__ = ["TranscriptBuilder"]
