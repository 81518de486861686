"""Deterministic scripted upstream for offline development and tests.

Purpose
-------
Implement ``UpstreamProvider`` without network traffic. Enabled in the
service with ``LOGPROB_RELAY_USE_MOCKS=1``; tests build it with an explicit
script to drive the relay through success, fallback and failure paths.

Streaming model
---------------
Streaming is push-based on purpose: a producer task pushes fragments into a
``FragmentBridge`` (one ``TextFragment`` then the token batch per step),
optionally sleeping between steps, and the relay pulls from the bridge.

Knobs
-----
``delay`` between steps, ``token_batch`` tokens per logprobs batch,
``fail_after`` (raise the given error after N steps), ``with_summary``
(whether a structured final object exists) and ``with_logprobs``.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Sequence, Tuple

from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.models import (
    Alt,
    FinalSummary,
    Fragment,
    TextFragment,
    TokenFragment,
    UpstreamChoice,
    UpstreamRequest,
    Usage,
)
from ..base.streaming.bridge import FragmentBridge

_WORD = re.compile(r"\s*\S+")


@dataclass(frozen=True)
class ScriptedToken:
    """One scripted token with its logprob and alternatives."""

    text: str
    logprob: float = -0.1
    alts: Tuple[Tuple[str, float], ...] = field(default_factory=tuple)

    def to_fragment(self, limit: Optional[int] = None) -> TokenFragment:
        alts = tuple(Alt.of(t, lp) for t, lp in self.alts)
        return TokenFragment(token=self.text, logprob=self.logprob, top_logprobs=alts[:limit] if limit else alts)


def script_from_text(text: str) -> List[ScriptedToken]:
    """Split ``text`` into word tokens with a deterministic logprob pattern."""
    out: List[ScriptedToken] = []
    for i, word in enumerate(_WORD.findall(text)):
        logprob = -0.05 - 0.4 * (i % 4)
        alts = ((word, logprob), (word.upper(), logprob - 1.5), (" ...", logprob - 3.0))
        out.append(ScriptedToken(word, logprob, alts))
    return out


def _last_user_content(request: UpstreamRequest) -> str:
    for message in reversed(request.messages):
        if message.role == "user":
            return message.content
    return ""


class ScriptedStream:
    """Push-based scripted stream exposed through a ``FragmentBridge``."""

    def __init__(self, upstream: "ScriptedUpstream", steps: Sequence[ScriptedToken], request: UpstreamRequest) -> None:
        self._upstream = upstream
        self._steps = list(steps)
        self._request = request
        self._bridge: FragmentBridge[Fragment] = FragmentBridge()
        self._producer: Optional[asyncio.Task] = None
        self.closed = False

    def start(self) -> None:
        self._producer = asyncio.get_running_loop().create_task(self._produce())

    async def _produce(self) -> None:
        up = self._upstream
        limit = self._request.params.top_logprobs
        batch: List[TokenFragment] = []
        try:
            for i, step in enumerate(self._steps):
                if up.fail_after is not None and i >= up.fail_after:
                    raise up.error
                self._bridge.push(TextFragment(step.text))
                if up.with_logprobs:
                    batch.append(step.to_fragment(limit))
                    if len(batch) >= up.token_batch:
                        for fragment in batch:
                            self._bridge.push(fragment)
                        batch = []
                if up.delay:
                    await asyncio.sleep(up.delay)
            for fragment in batch:
                self._bridge.push(fragment)
            if up.fail_after is not None and up.fail_after >= len(self._steps):
                raise up.error
            self._bridge.finish()
        except asyncio.CancelledError:
            self._bridge.close()
            raise
        except Exception as exc:
            self._bridge.fail(exc)

    def __aiter__(self) -> AsyncIterator[Fragment]:
        return self._bridge.__aiter__()

    async def final_summary(self) -> Optional[FinalSummary]:
        if not self._upstream.with_summary:
            return None
        text = "".join(s.text for s in self._steps)
        n = len(self._steps)
        prompt = sum(len(_WORD.findall(m.content)) for m in self._request.messages)
        return FinalSummary(
            text=text,
            finish_reason=self._upstream.finish_reason,
            usage=Usage(prompt_tokens=prompt, completion_tokens=n, total_tokens=prompt + n),
            model=self._request.model,
        )

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._upstream.record:
            self._upstream.closed_streams += 1
        producer = self._producer
        if producer is not None and not producer.done():
            producer.cancel()
            await asyncio.wait([producer])
        self._bridge.close()


class ScriptedUpstream:
    """Offline ``UpstreamProvider``.

    Parameters
    ----------
    script: Sequence[ScriptedToken] | None
        Tokens to emit. When ``None`` the reply echoes the last user message.
    delay: float
        Seconds to sleep between steps while streaming.
    token_batch: int
        Token fragments are released in batches of this size.
    fail_after: int | None
        Raise ``error`` once this many steps were produced.
    error: Exception
        Failure raised by ``fail_after`` and by ``open_error``.
    with_summary: bool
        Whether streams expose a structured final object.
    with_logprobs: bool
        Whether token-level data is produced at all.
    open_error: bool
        Fail while opening the stream / issuing the call.
    record: bool
        Keep ``requests`` and ``closed_streams`` for inspection. Long-lived
        service instances turn this off.
    """

    def __init__(
        self,
        script: Optional[Sequence[ScriptedToken]] = None,
        *,
        delay: float = 0.0,
        token_batch: int = 1,
        fail_after: Optional[int] = None,
        error: Optional[Exception] = None,
        with_summary: bool = True,
        with_logprobs: bool = True,
        open_error: bool = False,
        finish_reason: str = "stop",
        record: bool = True,
    ) -> None:
        self.script = list(script) if script is not None else None
        self.delay = delay
        self.token_batch = max(1, token_batch)
        self.fail_after = fail_after
        self.error = error or RuntimeError("scripted upstream failure")
        self.with_summary = with_summary
        self.with_logprobs = with_logprobs
        self.open_error = open_error
        self.finish_reason = finish_reason
        self.record = record
        self.requests: List[UpstreamRequest] = []
        self.closed_streams = 0
        self._logger = get_logger("providers.mock")

    def _record(self, request: UpstreamRequest) -> None:
        if self.record:
            self.requests.append(request)

    @property
    def provider_name(self) -> str:
        return "mock"

    def _steps(self, request: UpstreamRequest) -> List[ScriptedToken]:
        if self.script is not None:
            return list(self.script)
        return script_from_text(f"You said: {_last_user_content(request)}")

    async def complete(self, request: UpstreamRequest) -> UpstreamChoice:
        self._record(request)
        if self.open_error:
            raise self.error
        steps = self._steps(request)[: request.params.max_tokens]
        limit = request.params.top_logprobs
        return UpstreamChoice(
            text="".join(s.text for s in steps),
            tokens=[s.to_fragment(limit) for s in steps] if self.with_logprobs else [],
            finish_reason=self.finish_reason,
            usage=Usage(completion_tokens=len(steps), total_tokens=len(steps)),
            model=request.model,
        )

    async def open_stream(self, request: UpstreamRequest) -> ScriptedStream:
        self._record(request)
        normalized_log_event(
            self._logger,
            "mock.stream.open",
            LogContext(model=request.model),
            phase="start",
            emitted=False,
            tokens=None,
        )
        if self.open_error:
            raise self.error
        stream = ScriptedStream(self, self._steps(request)[: request.params.max_tokens], request)
        stream.start()
        return stream


__all__ = ["ScriptedToken", "ScriptedStream", "ScriptedUpstream", "script_from_text"]
