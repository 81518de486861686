"""Completion assembler.

Accumulates upstream fragments into the running transcript and token list,
emitting one protocol event per fragment. ``index`` values are assigned from
a monotonic counter so they stay contiguous however the upstream batches its
token deltas.
"""
from __future__ import annotations

from typing import List, Optional

from ..constants import FALLBACK_FINISH_REASON
from ..models import CompletionLP, FinalSummary, TokenFragment, TokenLP, Usage, normalize_token_fragment
from .events import DeltaEvent, LogprobsEvent


class CompletionAssembler:
    """Per-request accumulation state (never shared between requests)."""

    def __init__(self) -> None:
        self.aggregated_text = ""
        self.tokens: List[TokenLP] = []
        self.next_index = 0

    def on_text_fragment(self, fragment: str) -> DeltaEvent:
        """Append ``fragment`` verbatim and return its ``delta`` event."""
        self.aggregated_text += fragment
        return DeltaEvent(delta=fragment)

    def on_token_fragment(self, fragment) -> LogprobsEvent:
        """Index and record one token; returns its ``logprobs`` event.

        Accepts a ``TokenFragment`` or any raw upstream token shape, which is
        normalized first.
        """
        if not isinstance(fragment, TokenFragment):
            fragment = normalize_token_fragment(fragment)
        token = TokenLP(
            index=self.next_index,
            token=fragment.token,
            logprob=fragment.logprob,
            prob=fragment.prob,
            top_logprobs=list(fragment.top_logprobs),
        )
        self.next_index += 1
        self.tokens.append(token)
        return LogprobsEvent(delta=token)

    def finalize(
        self,
        summary: Optional[FinalSummary] = None,
        *,
        model: str = "",
        latency: Optional[int] = None,
        force_prefix_echo: Optional[str] = None,
    ) -> CompletionLP:
        """Build the final ``CompletionLP``.

        With a ``summary`` its text, finish reason, usage and model win (each
        falling back to accumulated state when missing) while the token list
        is always the accumulated one. Without a summary the result is the
        accumulated text, ``finish_reason="stop"`` and an approximate usage
        with ``prompt_tokens=0``.
        """
        tokens = list(self.tokens)
        approx = Usage.approximate(len(tokens))
        if summary is None:
            return CompletionLP(
                text=self.aggregated_text,
                tokens=tokens,
                finish_reason=FALLBACK_FINISH_REASON,
                usage=approx,
                model=model,
                latency=latency,
                force_prefix_echo=force_prefix_echo,
            )
        return CompletionLP(
            text=summary.text if summary.text is not None else self.aggregated_text,
            tokens=tokens,
            finish_reason=summary.finish_reason or FALLBACK_FINISH_REASON,
            usage=summary.usage or approx,
            model=summary.model or model,
            latency=latency,
            force_prefix_echo=force_prefix_echo,
        )


__all__ = ["CompletionAssembler"]
