"""
Background keep-alive for a Betfair session token.

Betfair expires idle session tokens, so a long-lived session pings the
keep-alive endpoint at a fixed interval (ten minutes by default).  The
loop belongs to exactly one session and is started at most once, after
the first successful login.  It runs until ``stop()`` is awaited (the
session does this on close) or the event loop shuts down.

A failed tick is logged and counted, then the loop waits for the next
interval.  It never re-logs in and never rotates the token.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..errors import BetfairError
from ..telemetry import KEEP_ALIVE_TOTAL


logger = logging.getLogger(__name__)


class KeepAliveLoop:
    def __init__(self, keep_alive: Callable[[], Awaitable[Any]], interval: float = 600.0) -> None:
        """
        :param keep_alive: Coroutine function performing one keep-alive call,
            normally ``BetfairSession.keep_alive``.
        :param interval: Seconds to sleep before each call.
        """
        self.keep_alive = keep_alive
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0
        self.failures = 0

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Schedule the loop on the running event loop.

        Returns False if the loop was already started; it is never
        started twice.
        """
        if self._task is not None:
            return False
        self._task = asyncio.create_task(self.run(), name="betfair-keep-alive")
        logger.info("Keep-alive loop started (interval=%ss)", self.interval)
        return True

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # Propagate if the caller of stop() is itself being cancelled
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        logger.info("Keep-alive loop stopped after %d ticks", self.ticks)

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.tick()

    async def tick(self) -> bool:
        """Perform one keep-alive call, logging rather than raising on failure."""
        self.ticks += 1
        try:
            await self.keep_alive()
        except BetfairError as exc:
            self.failures += 1
            KEEP_ALIVE_TOTAL.labels(result="failure").inc()
            logger.warning("Keep-alive failed; retrying in %ss: %s", self.interval, exc)
            return False
        except Exception:
            self.failures += 1
            KEEP_ALIVE_TOTAL.labels(result="failure").inc()
            logger.exception("Unexpected error during keep-alive")
            return False
        KEEP_ALIVE_TOTAL.labels(result="success").inc()
        logger.debug("Keep-alive succeeded")
        return True
