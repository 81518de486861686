"""OpenAI upstream adapter built on the ``openai`` async SDK.

``OpenAIUpstream`` implements ``UpstreamProvider``:

- ``complete`` issues one ``chat.completions.create`` call with
  ``logprobs=True`` and ``top_logprobs`` and normalizes ``choices[0]``.
- ``open_stream`` enters the SDK's chat-completion stream helper and wraps it
  in ``OpenAIStream``, which yields relay fragments for ``content.delta`` and
  ``logprobs.content.delta`` events and exposes the helper's final
  completion as the structured summary.

The SDK client is created lazily on first use and then shared by concurrent
requests; it is never mutated per request. SDK exceptions propagate
unchanged and are classified by the callers.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Optional

from openai import AsyncOpenAI

from ..base.logging import get_logger
from ..base.models import FinalSummary, Fragment, UpstreamChoice, UpstreamRequest
from .style_helpers import choice_from_response, fragments_from_event, summary_from_completion

__all__ = ["OpenAIStream", "OpenAIUpstream"]


class OpenAIStream:
    """An entered SDK stream helper seen as an ``UpstreamStream``."""

    def __init__(self, manager: Any, stream: Any, *, top_logprobs: Optional[int] = None) -> None:
        self._manager = manager
        self._stream = stream
        self._top_logprobs = top_logprobs
        self._closed = False

    def __aiter__(self) -> AsyncIterator[Fragment]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Fragment]:
        async for event in self._stream:
            for fragment in fragments_from_event(event, top_logprobs=self._top_logprobs):
                yield fragment

    async def final_summary(self) -> Optional[FinalSummary]:
        """Return the helper's final completion as a ``FinalSummary``.

        Raises whatever the SDK raises when the stream ended before a final
        completion could be assembled.
        """
        completion = await self._stream.get_final_completion()
        return summary_from_completion(completion)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._manager.__aexit__(None, None, None)


class OpenAIUpstream:
    """OpenAI chat completions adapter.

    Parameters:
        api_key: Credential passed to the SDK client.
        base_url: Optional endpoint override (OpenAI-compatible servers).
        client: Pre-built ``AsyncOpenAI`` (or compatible) client; tests use
            this to inject fakes.
        timeout: Optional SDK request timeout in seconds.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        client: Any = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._client = client
        self._logger = get_logger("providers.openai")

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def client(self) -> Any:
        if self._client is None:
            kwargs: dict = {"api_key": self._api_key, "base_url": self._base_url}
            if self._timeout:
                kwargs["timeout"] = self._timeout
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    @classmethod
    def from_config(cls, config) -> "OpenAIUpstream":
        """Build from a ``RelayConfig``."""
        return cls(api_key=config.api_key, base_url=config.base_url)

    async def complete(self, request: UpstreamRequest) -> UpstreamChoice:
        resp = await self.client.chat.completions.create(**request.to_api_params())
        return choice_from_response(resp, top_logprobs=request.params.top_logprobs)

    async def open_stream(self, request: UpstreamRequest) -> OpenAIStream:
        params = request.to_api_params()
        params["stream_options"] = {"include_usage": True}
        manager = self.client.chat.completions.stream(**params)
        stream = await manager.__aenter__()
        return OpenAIStream(manager, stream, top_logprobs=request.params.top_logprobs)
