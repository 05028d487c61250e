import asyncio

import pytest

from lesson_core.services.ticker import AsyncioTicker, ManualTicker


def test_manual_ticker_advances_active_subscriptions():
    ticker = ManualTicker()
    ticks = []
    sub = ticker.subscribe(lambda: ticks.append("a"))
    ticker.subscribe(lambda: ticks.append("b"))
    ticker.advance(2)
    assert ticks == ["a", "b", "a", "b"]
    sub.cancel()
    sub.cancel()
    ticker.advance()
    assert ticks[-1] == "b"
    assert ticker.active_subscriptions == 1


def test_asyncio_ticker_stops_after_cancel():
    async def run():
        ticks = []
        sub = AsyncioTicker(interval=0.01).subscribe(lambda: ticks.append(1))
        await asyncio.sleep(0.08)
        sub.cancel()
        fired = len(ticks)
        await asyncio.sleep(0.05)
        return fired, len(ticks)

    fired, after = asyncio.run(run())
    assert fired >= 1
    assert after == fired


def test_asyncio_ticker_requires_running_loop():
    with pytest.raises(RuntimeError):
        AsyncioTicker().subscribe(lambda: None)
