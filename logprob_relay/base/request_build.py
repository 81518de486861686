"""Upstream request construction from validated request bodies.

This module turns a ``CompleteRequestDTO`` into the ``UpstreamRequest``
shared by the streaming and non-streaming paths: it re-clamps the sampling
parameters and applies the force-prefix policy.

Force prefix
------------
With ``continuation_mode`` unset or ``"assistant-prefix"`` a non-empty
``force_prefix`` is appended as a trailing assistant message and echoed back
in the final completion. ``"hint"`` leaves the messages untouched and echoes
nothing.
"""

from __future__ import annotations

from typing import List, Optional

from .constants import CONTINUATION_ASSISTANT_PREFIX
from .dto import CompleteRequestDTO
from .models import ChatMessage, RunParameters, UpstreamRequest


def apply_force_prefix(
    messages: List[ChatMessage],
    force_prefix: Optional[str],
    continuation_mode: Optional[str] = None,
) -> Optional[str]:
    """Append the synthetic assistant message in place when the policy applies.

    Returns
    -------
    Optional[str]
        The prefix to echo as ``force_prefix_echo``, or ``None``.
    """
    if not force_prefix:
        return None
    if (continuation_mode or CONTINUATION_ASSISTANT_PREFIX) != CONTINUATION_ASSISTANT_PREFIX:
        return None
    messages.append(ChatMessage(role="assistant", content=force_prefix))
    return force_prefix


def build_upstream_request(body: CompleteRequestDTO) -> UpstreamRequest:
    """Construct the ``UpstreamRequest`` for a validated body.

    Parameters
    ----------
    body: CompleteRequestDTO
        Validated request body.

    Returns
    -------
    UpstreamRequest
        Request with clamped parameters and the force-prefix policy applied.
    """
    messages = body.to_messages()
    echo = apply_force_prefix(messages, body.force_prefix, body.continuation_mode)
    params: RunParameters = body.to_run_parameters().clamped()
    return UpstreamRequest(
        model=body.model,
        messages=messages,
        params=params,
        force_prefix_echo=echo,
    )


__all__ = ["apply_force_prefix", "build_upstream_request"]
