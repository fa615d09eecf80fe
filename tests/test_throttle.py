from __future__ import annotations

import asyncio

import pytest

from cfb_board.core.throttle import RateLimiter, gather_bounded


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_rate_limiter_spends_burst_then_waits():
    clock = FakeClock()
    limiter = RateLimiter(2.0, burst=2, clock=clock, sleep=clock.sleep)

    async def run():
        for _ in range(4):
            await limiter.acquire()

    asyncio.run(run())
    assert clock.sleeps == [pytest.approx(0.5), pytest.approx(0.5)]
    assert clock.now == pytest.approx(1.0)


def test_rate_limiter_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        RateLimiter(0)


def test_gather_bounded_keeps_order_and_bounds_concurrency():
    active = 0
    peak = 0

    async def worker(n: int) -> int:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01 * (5 - n))
        active -= 1
        return n * 10

    results = asyncio.run(gather_bounded(range(5), worker, concurrency=2))
    assert results == [0, 10, 20, 30, 40]
    assert peak == 2


def test_gather_bounded_returns_failures_in_place():
    async def worker(n: int) -> int:
        if n == 1:
            raise RuntimeError("bad team")
        return n

    results = asyncio.run(gather_bounded([0, 1, 2], worker, concurrency=3))
    assert results[0] == 0
    assert isinstance(results[1], RuntimeError)
    assert results[2] == 2
