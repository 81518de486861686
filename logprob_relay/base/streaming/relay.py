"""Streaming relay orchestrator.

``StreamingRelay`` owns one request's lifecycle as an explicit state machine::

    VALIDATING -> OPENING -> STREAMING -> FINALIZING -> CLOSED
                     \\            \\            \\
                      ERRORED      ABORTED      ABORTED

Behavior
--------
- ``run()`` is an async generator of protocol events. Every fragment pulled
  from the upstream goes through the assembler and its event is yielded
  immediately, in arrival order.
- Upstream failures while opening or streaming do not escape: they become
  the error payload of the terminal ``done``.
- Exactly one ``done`` is yielded, last, on every path except client abort.
  It is produced after a ``try``/``finally`` that always releases the
  upstream, so no branch can skip it.
- Abort (``cancel()``, a cancelled consumer task, or ``aclose()`` of the
  generator) moves to ``ABORTED``: the upstream stream is closed, which ends
  any pending read, and nothing more is yielded.

Timeouts
--------
Opening and the final summary query use ``start_timeout_seconds``; each wait
for the next fragment uses ``stream_idle_timeout_seconds``. There is no
overall session deadline.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, AsyncIterator, Optional

from ..cancellation import CancellationToken, CancelledError
from ..errors import ErrorCode, RelayError, as_relay_error
from ..logging import LogContext, get_logger, normalized_log_event
from ..models import TextFragment, TokenFragment, UpstreamRequest
from ..timeouts import TimeoutConfig, get_timeout_config, with_timeout
from .assembler import CompletionAssembler
from .events import DoneEvent, StreamEvent
from .finalize import choose_finalizer, fetch_summary
from .streaming_metrics import StreamMetrics

if TYPE_CHECKING:
    from ..interfaces import UpstreamProvider, UpstreamStream

_logger = get_logger("streaming.relay")


class RelayState(str, Enum):
    """Lifecycle states of a relay session."""

    VALIDATING = "validating"
    OPENING = "opening"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    CLOSED = "closed"
    ABORTED = "aborted"
    ERRORED = "errored"


_ABSORBING = frozenset({RelayState.CLOSED, RelayState.ABORTED, RelayState.ERRORED})


class StreamingRelay:
    """One streaming completion, from upstream open to the terminal event.

    Parameters
    ----------
    provider: UpstreamProvider
        Adapter used to open the upstream stream.
    request: UpstreamRequest
        Prepared request (clamped parameters, force prefix applied).
    token: CancellationToken | None
        Abort signal shared with the HTTP layer. A fresh token is used when
        omitted; ``cancel()`` fires it either way.
    timeouts: TimeoutConfig | None
        Defaults to ``get_timeout_config()``.
    ctx: LogContext | None
        Logging context (request id, model).
    started_at: float | None
        ``time.perf_counter()`` at request receipt; latency is measured from it.
    """

    def __init__(
        self,
        provider: "UpstreamProvider",
        request: UpstreamRequest,
        *,
        token: CancellationToken | None = None,
        timeouts: TimeoutConfig | None = None,
        ctx: LogContext | None = None,
        started_at: float | None = None,
    ) -> None:
        self._provider = provider
        self._request = request
        self._token = token or CancellationToken()
        self._timeouts = timeouts or get_timeout_config()
        self.ctx = ctx or LogContext(model=request.model)
        self.assembler = CompletionAssembler()
        self.metrics = StreamMetrics() if started_at is None else StreamMetrics(started_at=started_at)
        self._state = RelayState.VALIDATING
        self._upstream: Optional["UpstreamStream"] = None
        self._close_task: Optional[asyncio.Task] = None
        self._upstream_closed = False
        self._done_emitted = False
        self._token.on_cancel(self._on_cancel)

    # API -----------------------------------------------------------------
    @property
    def state(self) -> RelayState:
        return self._state

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def done_emitted(self) -> bool:
        return self._done_emitted

    def cancel(self, reason: str | None = "client aborted") -> None:
        """Abort the session. Safe to call repeatedly or after completion."""
        self._token.cancel(reason)

    def validate(self) -> None:
        """Check relay preconditions before any stream is committed.

        Raises:
            RelayError: ``VALIDATION`` without messages, ``CONFIGURATION``
                without a provider. The relay is then ``ERRORED``.
        """
        if self._state is not RelayState.VALIDATING:
            return
        if not self._request.messages:
            self._transition(RelayState.ERRORED)
            raise RelayError(ErrorCode.VALIDATION, "messages must contain at least one message", model=self._request.model)
        if self._provider is None:
            self._transition(RelayState.ERRORED)
            raise RelayError(ErrorCode.CONFIGURATION, "no upstream provider configured", model=self._request.model)
        self._transition(RelayState.OPENING)

    async def run(self) -> AsyncIterator[StreamEvent]:
        """Yield protocol events for this session (see module docstring)."""
        self.validate()
        error: Optional[RelayError] = None
        terminal: Optional[DoneEvent] = None
        external_cancel: Optional[BaseException] = None
        try:
            try:
                await self._open()
                iterator = self._upstream.__aiter__()  # type: ignore[union-attr]
                while True:
                    self._token.raise_if_cancelled()
                    try:
                        fragment = await self._next_fragment(iterator)
                    except StopAsyncIteration:
                        break
                    event = self._route(fragment)
                    if event is None:
                        continue
                    self.metrics.record(event.type)
                    yield event
            except CancelledError:
                pass
            except asyncio.CancelledError as exc:
                external_cancel = exc
                self._token.cancel("client disconnected")
            except GeneratorExit:
                self._token.cancel("client disconnected")
                self._abort()
                raise
            except Exception as exc:
                error = as_relay_error(exc, model=self._request.model)

            if self._token.cancelled:
                self._abort()
                if external_cancel is not None:
                    raise external_cancel
                return

            try:
                terminal = await self._finalize(error)
            except asyncio.CancelledError:
                self._token.cancel("client disconnected")
                self._abort()
                raise
            except Exception as exc:
                terminal = DoneEvent(error=as_relay_error(exc, model=self._request.model).terminal_text())
        finally:
            await self._release()

        if self._token.cancelled:
            self._abort()
            return
        self._done_emitted = True
        self._transition(RelayState.CLOSED)
        self._log_done(terminal)
        yield terminal

    # Phases --------------------------------------------------------------
    async def _open(self) -> None:
        self._token.raise_if_cancelled()
        normalized_log_event(
            _logger,
            "relay.open",
            self.ctx,
            phase="start",
            attempt=1,
            emitted=False,
            tokens=None,
            top_logprobs=self._request.params.top_logprobs,
            max_tokens=self._request.params.max_tokens,
            force_prefix=self._request.force_prefix_echo is not None,
        )
        self._upstream = await with_timeout(
            self._provider.open_stream(self._request),
            self._timeouts.start_timeout_seconds,
        )
        if self._token.cancelled:
            # Aborted while opening; the callback had nothing to close yet.
            self._schedule_close()
            self._token.raise_if_cancelled()
        self._transition(RelayState.STREAMING)

    async def _next_fragment(self, iterator):
        return await with_timeout(iterator.__anext__(), self._timeouts.stream_idle_timeout_seconds)

    def _route(self, fragment) -> Optional[StreamEvent]:
        if isinstance(fragment, TextFragment):
            if not fragment.text:
                return None
            return self.assembler.on_text_fragment(fragment.text)
        if isinstance(fragment, TokenFragment):
            return self.assembler.on_token_fragment(fragment)
        # Raw token shapes from loosely typed adapters.
        return self.assembler.on_token_fragment(fragment)

    async def _finalize(self, error: Optional[RelayError]) -> DoneEvent:
        self._transition(RelayState.FINALIZING)
        self.metrics.close()
        if error is not None:
            return DoneEvent(error=error.terminal_text())
        summary = await fetch_summary(self._upstream, self._timeouts.start_timeout_seconds, self.ctx)
        strategy_name, strategy = choose_finalizer(summary)
        completion = strategy(
            self.assembler,
            summary,
            model=self._request.model,
            latency=int(round(self.metrics.elapsed_ms())),
            force_prefix_echo=self._request.force_prefix_echo,
        )
        normalized_log_event(
            _logger,
            "relay.finalize",
            self.ctx,
            phase="finalize",
            emitted=self.metrics.emitted > 0,
            tokens=completion.usage,
            strategy=strategy_name,
            finish_reason=completion.finish_reason,
        )
        return DoneEvent(completion=completion)

    # Cancellation and cleanup ---------------------------------------------
    def _on_cancel(self, reason: str | None) -> None:
        # Closing the upstream ends any pending read.
        self._schedule_close()

    def _schedule_close(self) -> None:
        if self._upstream is None or self._upstream_closed or self._close_task is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop in this thread; ``_release`` closes the upstream instead.
            return
        self._close_task = loop.create_task(self._close_upstream())

    async def _close_upstream(self) -> None:
        if self._upstream is None or self._upstream_closed:
            return
        self._upstream_closed = True
        try:
            await self._upstream.aclose()
        except Exception as exc:
            normalized_log_event(
                _logger,
                "relay.release_error",
                self.ctx,
                phase="release",
                error_code=as_relay_error(exc).code.value,
                emitted=None,
                tokens=None,
                level=logging.WARNING,
                error=str(exc)[:260],
            )

    async def _release(self) -> None:
        task = self._close_task
        if task is None:
            await self._close_upstream()
        elif not task.done():
            await asyncio.shield(task)

    def _abort(self) -> None:
        if self._state is RelayState.ABORTED:
            return
        self.metrics.close()
        self._transition(RelayState.ABORTED)
        normalized_log_event(
            _logger,
            "relay.aborted",
            self.ctx,
            phase="abort",
            error_code=ErrorCode.CANCELLED.value,
            emitted=self.metrics.emitted,
            tokens=None,
            reason=self._token.reason,
        )

    def _transition(self, state: RelayState) -> None:
        previous = self._state
        if previous is state or previous in _ABSORBING:
            return
        self._state = state
        normalized_log_event(
            _logger,
            "relay.state",
            self.ctx,
            phase=state.value,
            emitted=None,
            tokens=None,
            level=logging.DEBUG,
            previous=previous.value,
        )

    def _log_done(self, terminal: DoneEvent) -> None:
        error_code = None
        if terminal.error and ":" in terminal.error:
            error_code = terminal.error.split(":", 1)[0].strip() or None
        normalized_log_event(
            _logger,
            "relay.done",
            self.ctx,
            phase="done",
            error_code=error_code,
            emitted=self.metrics.emitted,
            tokens=terminal.completion.usage if terminal.completion else None,
            ok=terminal.ok,
            deltas=self.metrics.deltas,
            token_events=self.metrics.tokens,
            time_to_first_event_ms=self.metrics.time_to_first_event_ms,
            total_duration_ms=self.metrics.total_duration_ms,
            error=terminal.error,
        )


__all__ = ["RelayState", "StreamingRelay"]
