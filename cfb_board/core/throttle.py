# cfb_board/core/throttle.py
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

logger = logging.getLogger("cfb.throttle")

T = TypeVar("T")
R = TypeVar("R")


class RateLimiter:
    """
    Async token bucket.

    `rate` tokens are added per second up to `burst`. `acquire()` waits until a
    token is available. Clock and sleep are injectable so tests don't need
    real time.
    """

    def __init__(
        self,
        rate: float,
        burst: Optional[int] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if rate <= 0:
            raise ValueError("rate must be > 0")
        self.rate = float(rate)
        self.burst = float(burst if burst is not None else max(1, int(rate)))
        self._clock = clock
        self._sleep = sleep
        self._tokens = self.burst
        self._last = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last)
        self._last = now
        self._tokens = min(self.burst, self._tokens + elapsed * self.rate)

    async def acquire(self) -> None:
        async with self._lock:
            self._refill()
            while self._tokens < 1.0:
                wait = (1.0 - self._tokens) / self.rate
                await self._sleep(wait)
                self._refill()
            self._tokens -= 1.0


async def gather_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    concurrency: int,
    limiter: Optional[RateLimiter] = None,
) -> List[R | BaseException]:
    """
    Run worker(item) for every item, at most `concurrency` at a time.

    Results come back in input order. A failing worker does not cancel the
    others; its exception is returned in its slot.
    """
    sem = asyncio.Semaphore(max(1, concurrency))

    async def guarded(item: T) -> R:
        async with sem:
            if limiter is not None:
                await limiter.acquire()
            return await worker(item)

    results = await asyncio.gather(*(guarded(i) for i in items), return_exceptions=True)
    failed = sum(1 for r in results if isinstance(r, BaseException))
    if failed:
        logger.warning("gather_bounded: %d/%d workers failed", failed, len(results))
    return list(results)
