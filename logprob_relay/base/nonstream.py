"""Non-streaming completion path.

Purpose
-------
- One upstream call with ``logprobs`` and ``top_logprobs`` requested inline.
- Map the first choice into a ``CompletionLP`` through the same assembler
  the streaming relay uses, so both paths share indexing and codec rules.

Failure semantics
-----------------
- Zero token entries is a distinguished, client-correctable condition:
  ``RelayError(LOGPROBS_UNAVAILABLE)`` (HTTP 409 at the service edge).
- Any other upstream failure is wrapped via ``as_relay_error`` and re-raised
  (HTTP 502 unless classified otherwise).

Timeout strategy
----------------
The whole call runs under ``start_timeout_seconds``.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Optional

from .constants import LOGPROBS_UNAVAILABLE_ERROR, UNKNOWN_FINISH_REASON
from .errors import ErrorCode, RelayError, as_relay_error
from .logging import LogContext, get_logger, normalized_log_event
from .models import CompletionLP, UpstreamChoice, UpstreamRequest, Usage
from .streaming.assembler import CompletionAssembler
from .timeouts import TimeoutConfig, get_timeout_config, with_timeout

if TYPE_CHECKING:
    from .interfaces import UpstreamProvider

_logger = get_logger("nonstream")


def completion_from_choice(
    choice: UpstreamChoice,
    *,
    model: str,
    latency: Optional[int] = None,
    force_prefix_echo: Optional[str] = None,
) -> CompletionLP:
    """Map a normalized upstream choice into a ``CompletionLP``.

    Raises
    ------
    RelayError
        ``LOGPROBS_UNAVAILABLE`` when the choice carries no token entries.
    """
    if not choice.tokens:
        raise RelayError(ErrorCode.LOGPROBS_UNAVAILABLE, LOGPROBS_UNAVAILABLE_ERROR, model=model)
    assembler = CompletionAssembler()
    for fragment in choice.tokens:
        assembler.on_token_fragment(fragment)
    return CompletionLP(
        text=choice.text,
        tokens=assembler.tokens,
        finish_reason=choice.finish_reason or UNKNOWN_FINISH_REASON,
        usage=choice.usage or Usage(),
        model=choice.model or model,
        latency=latency,
        force_prefix_echo=force_prefix_echo,
    )


async def complete_once(
    provider: "UpstreamProvider",
    request: UpstreamRequest,
    *,
    ctx: LogContext | None = None,
    timeouts: TimeoutConfig | None = None,
    started_at: float | None = None,
) -> CompletionLP:
    """Run one non-streaming completion.

    Parameters
    ----------
    provider: UpstreamProvider
        Upstream adapter.
    request: UpstreamRequest
        Prepared request (clamped parameters, force prefix applied).
    ctx: LogContext | None
        Logging context.
    timeouts: TimeoutConfig | None
        Defaults to ``get_timeout_config()``.
    started_at: float | None
        ``time.perf_counter()`` at request receipt, for ``latency``.

    Returns
    -------
    CompletionLP
        Completion with every token and alternative decorated by the codec.

    Raises
    ------
    RelayError
        ``LOGPROBS_UNAVAILABLE`` or the classified upstream failure.
    """
    ctx = ctx or LogContext(model=request.model)
    timeouts = timeouts or get_timeout_config()
    t0 = started_at if started_at is not None else time.perf_counter()
    normalized_log_event(
        _logger,
        "complete.start",
        ctx,
        phase="start",
        attempt=1,
        emitted=False,
        tokens=None,
        top_logprobs=request.params.top_logprobs,
        max_tokens=request.params.max_tokens,
    )
    try:
        choice = await with_timeout(provider.complete(request), timeouts.start_timeout_seconds)
        completion = completion_from_choice(
            choice,
            model=request.model,
            latency=int(round((time.perf_counter() - t0) * 1000.0)),
            force_prefix_echo=request.force_prefix_echo,
        )
    except Exception as exc:
        err = as_relay_error(exc, model=request.model)
        normalized_log_event(
            _logger,
            "complete.error",
            ctx,
            phase="finalize",
            attempt=1,
            error_code=err.code.value,
            emitted=False,
            tokens=None,
            level=logging.WARNING,
            error=err.message[:260],
        )
        if err is exc:
            raise
        raise err from exc
    normalized_log_event(
        _logger,
        "complete.end",
        ctx,
        phase="finalize",
        attempt=1,
        emitted=True,
        tokens=completion.usage,
        token_count=len(completion.tokens),
        finish_reason=completion.finish_reason,
        latency_ms=completion.latency,
    )
    return completion


__all__ = ["complete_once", "completion_from_choice"]
