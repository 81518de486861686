"""Finalization strategies for the streaming relay.

Two named strategies build the terminal ``CompletionLP``:

- ``summary``: the upstream exposed a structured final object; its text,
  finish reason, usage and model are authoritative, tokens stay the
  assembler's.
- ``accumulated``: no usable final object; everything comes from the
  assembler (``finish_reason="stop"``, approximate usage).

``choose_finalizer`` is the single decision point. ``fetch_summary`` turns a
failing or missing summary query into ``None`` so the choice never depends
on exception flow.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from ..logging import LogContext, get_logger, normalized_log_event
from ..errors import classify_exception
from ..models import CompletionLP, FinalSummary
from ..timeouts import with_timeout
from .assembler import CompletionAssembler

_logger = get_logger("streaming.finalize")

Finalizer = Callable[..., CompletionLP]

SUMMARY_STRATEGY = "summary"
ACCUMULATED_STRATEGY = "accumulated"


def finalize_from_summary(
    assembler: CompletionAssembler,
    summary: FinalSummary,
    *,
    model: str = "",
    latency: Optional[int] = None,
    force_prefix_echo: Optional[str] = None,
) -> CompletionLP:
    """Prefer the structured summary, keep accumulated tokens."""
    return assembler.finalize(summary, model=model, latency=latency, force_prefix_echo=force_prefix_echo)


def finalize_from_accumulated(
    assembler: CompletionAssembler,
    summary: Optional[FinalSummary] = None,
    *,
    model: str = "",
    latency: Optional[int] = None,
    force_prefix_echo: Optional[str] = None,
) -> CompletionLP:
    """Best-effort completion from accumulated state only."""
    return assembler.finalize(None, model=model, latency=latency, force_prefix_echo=force_prefix_echo)


def choose_finalizer(summary: Optional[FinalSummary]) -> Tuple[str, Finalizer]:
    """Return ``(name, strategy)`` for the available summary."""
    if summary is not None:
        return SUMMARY_STRATEGY, finalize_from_summary
    return ACCUMULATED_STRATEGY, finalize_from_accumulated


async def fetch_summary(upstream, timeout: Optional[float], ctx: LogContext | None = None) -> Optional[FinalSummary]:
    """Query the upstream's final object; ``None`` when absent or failing.

    Failures are logged as ``relay.summary_unavailable`` and otherwise
    absorbed: the accumulated strategy covers them.
    """
    try:
        return await with_timeout(upstream.final_summary(), timeout)
    except Exception as exc:
        normalized_log_event(
            _logger,
            "relay.summary_unavailable",
            ctx,
            phase="finalize",
            error_code=classify_exception(exc).value,
            emitted=None,
            tokens=None,
            level=logging.WARNING,
            error=str(exc)[:260],
        )
        return None


__all__ = [
    "ACCUMULATED_STRATEGY",
    "SUMMARY_STRATEGY",
    "Finalizer",
    "choose_finalizer",
    "fetch_summary",
    "finalize_from_accumulated",
    "finalize_from_summary",
]
