"""Fixtures for streaming tests.

Provides a collector that drives a relay to completion on a fresh event loop
and a deterministic ``perf_counter`` for metrics assertions.
"""
from __future__ import annotations

import asyncio
import time
from typing import List

import pytest

from logprob_relay.base.streaming import StreamingRelay


@pytest.fixture()
def collect():
    """Run ``relay.run()`` to exhaustion and return the events."""

    def _collect(relay: StreamingRelay) -> List:
        async def _run():
            return [event async for event in relay.run()]

        return asyncio.run(_run())

    return _collect


@pytest.fixture()
def fake_clock(monkeypatch):
    """Provide a deterministic perf_counter sequence.

    Usage: fake_clock.advance(ms) to move time forward.
    """
    state = {"t": 0.0}

    def perf_counter():
        return state["t"]

    def advance(ms: float):
        state["t"] += ms / 1000.0

    monkeypatch.setattr(time, "perf_counter", perf_counter)
    return type("Clock", (), {"advance": staticmethod(advance)})
