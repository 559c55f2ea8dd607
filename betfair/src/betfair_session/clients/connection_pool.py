"""
Admission control for authenticated exchanges.

``ConnectionPool`` is a counting semaphore with a fixed number of
permits.  It caps how many exchanges a session may have in flight at
once; it does not cache sockets (aiohttp's connector already reuses
connections).  Permits are taken with ``async with pool.acquire():`` so
the release runs on every exit path, including errors and cancellation.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..telemetry import REQUESTS_IN_FLIGHT


class ConnectionPool:
    """Fixed-capacity gate on concurrent exchanges."""

    def __init__(self, capacity: int = 100) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._in_flight = 0

    @property
    def available(self) -> int:
        """Number of permits not currently held."""
        return self.capacity - self._in_flight

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def acquire_permit(self) -> None:
        """Wait until a permit is free and take it.

        Prefer :meth:`acquire`; callers using this directly must pair it
        with exactly one :meth:`release_permit`.
        """
        await self._semaphore.acquire()
        self._in_flight += 1
        REQUESTS_IN_FLIGHT.inc()

    def release_permit(self) -> None:
        if self._in_flight <= 0:
            raise RuntimeError("release_permit called without a matching acquire")
        self._in_flight -= 1
        REQUESTS_IN_FLIGHT.dec()
        self._semaphore.release()

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[None]:
        await self.acquire_permit()
        try:
            yield
        finally:
            self.release_permit()
