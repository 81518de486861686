"""Shared fakes for relay tests.

``FakeOpenAIClient`` mimics the parts of ``AsyncOpenAI`` the adapter touches:
``chat.completions.create`` and the ``chat.completions.stream`` helper (an
async context manager yielding typed events and a final completion).
"""
from __future__ import annotations

from types import SimpleNamespace as NS
from typing import Any, Dict, List, Optional, Sequence

from logprob_relay.base.models import ChatMessage, RunParameters, UpstreamRequest


def make_request(
    content: str = "Say hi",
    *,
    model: str = "m1",
    force_prefix_echo: Optional[str] = None,
    **params: Any,
) -> UpstreamRequest:
    return UpstreamRequest(
        model=model,
        messages=[ChatMessage(role="user", content=content)],
        params=RunParameters(**params).clamped(),
        force_prefix_echo=force_prefix_echo,
    )


def sdk_token(token: str, logprob: Optional[float], alts: Sequence[tuple] = ()) -> NS:
    return NS(token=token, logprob=logprob, top_logprobs=[NS(token=t, logprob=lp) for t, lp in alts])


def sdk_response(
    text: str = "Hi there",
    tokens: Sequence[NS] = (),
    *,
    finish_reason: Optional[str] = "stop",
    usage: Optional[Dict[str, int]] = None,
    model: str = "m1",
) -> NS:
    choice = NS(
        message=NS(content=text),
        finish_reason=finish_reason,
        logprobs=NS(content=list(tokens)),
    )
    return NS(choices=[choice], usage=NS(**usage) if usage else None, model=model)


def content_delta(text: str) -> NS:
    return NS(type="content.delta", delta=text, snapshot=text)


def logprobs_delta(*tokens: NS) -> NS:
    return NS(type="logprobs.content.delta", content=list(tokens), snapshot=list(tokens))


class FakeStream:
    """Entered stream helper: async iteration plus ``get_final_completion``."""

    def __init__(self, events: Sequence[Any], *, final: Any = None, error: Optional[Exception] = None,
                 final_error: Optional[Exception] = None) -> None:
        self.events = list(events)
        self.final = final
        self.error = error
        self.final_error = final_error

    def __aiter__(self):
        return self._gen()

    async def _gen(self):
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error

    async def get_final_completion(self) -> Any:
        if self.final_error is not None:
            raise self.final_error
        return self.final


class FakeStreamManager:
    def __init__(self, stream: FakeStream) -> None:
        self.stream = stream
        self.entered = False
        self.exited = False

    async def __aenter__(self) -> FakeStream:
        self.entered = True
        return self.stream

    async def __aexit__(self, *exc_info: Any) -> None:
        self.exited = True


class FakeCompletions:
    def __init__(self, response: Any = None, stream: Optional[FakeStream] = None,
                 error: Optional[Exception] = None) -> None:
        self._response = response
        self._stream = stream
        self._error = error
        self.calls: List[Dict[str, Any]] = []
        self.managers: List[FakeStreamManager] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._response

    def stream(self, **kwargs: Any) -> FakeStreamManager:
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        manager = FakeStreamManager(self._stream or FakeStream([]))
        self.managers.append(manager)
        return manager


class FakeOpenAIClient:
    def __init__(self, completions: FakeCompletions) -> None:
        self.completions = completions
        self.chat = NS(completions=completions)


class StatusError(Exception):
    """Exception carrying an HTTP status like the SDK's ``APIStatusError``."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code
