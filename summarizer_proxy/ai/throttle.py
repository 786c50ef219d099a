"""Fixed-delay throttle applied before outbound summarize calls."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class RequestThrottle:
    """Enforce a minimum spacing between consecutive upstream calls.

    When a call arrives less than ``interval_seconds`` after the previous one,
    the caller sleeps for the full interval. Concurrent callers each wait
    independently; there is no queue and no ordering between them. The state
    is a single timestamp shared by every request on the event loop, so no
    lock is taken.
    """

    def __init__(
        self,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.interval_seconds = max(0.0, interval_seconds)
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None

    @property
    def last_call(self) -> float | None:
        return self._last_call

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    async def wait(self) -> float:
        """Sleep if needed, record the call, and return the delay applied."""

        delay = 0.0
        if self.enabled and self._last_call is not None:
            if self._clock() - self._last_call < self.interval_seconds:
                delay = self.interval_seconds
                logger.debug("Throttling upstream call", extra={"delay_seconds": delay})
                await self._sleep(delay)

        now = self._clock()
        if self._last_call is None or now > self._last_call:
            self._last_call = now
        return delay
