"""Push-to-pull bridge ordering and stream metrics bookkeeping."""
from __future__ import annotations

import asyncio

import pytest

from logprob_relay.base.streaming import FragmentBridge, StreamMetrics


def test_bridge_preserves_order_and_ends():
    async def run():
        bridge = FragmentBridge()
        for i in range(3):
            bridge.push(i)
        bridge.finish()
        bridge.push(99)
        items = [i async for i in bridge]
        again = [i async for i in bridge]
        return items, again

    items, again = asyncio.run(run())
    assert items == [0, 1, 2]
    assert again == []


def test_bridge_failure_raised_after_buffered_items():
    async def run():
        bridge = FragmentBridge()
        bridge.push("a")
        bridge.fail(RuntimeError("upstream broke"))
        seen = []
        with pytest.raises(RuntimeError, match="upstream broke"):
            async for item in bridge:
                seen.append(item)
        return seen

    assert asyncio.run(run()) == ["a"]


def test_bridge_consumer_waits_for_producer():
    async def run():
        bridge = FragmentBridge()

        async def produce():
            for ch in "abc":
                await asyncio.sleep(0)
                bridge.push(ch)
            bridge.finish()

        task = asyncio.create_task(produce())
        items = [i async for i in bridge]
        await task
        return items

    assert asyncio.run(run()) == ["a", "b", "c"]


def test_bridge_close_drops_buffer():
    async def run():
        bridge = FragmentBridge()
        bridge.push(1)
        bridge.close()
        return [i async for i in bridge], bridge.finished

    assert asyncio.run(run()) == ([], True)


def test_metrics_counts_and_durations(fake_clock):
    m = StreamMetrics()
    fake_clock.advance(5)
    m.record("delta")
    fake_clock.advance(5)
    m.record("logprobs")
    m.record("logprobs")
    fake_clock.advance(10)
    m.close()
    m.close()
    assert (m.deltas, m.tokens, m.emitted) == (1, 2, 3)
    assert m.time_to_first_event_ms == pytest.approx(5.0)
    assert m.total_duration_ms == pytest.approx(20.0)
    assert m.to_dict()["deltas"] == 1
