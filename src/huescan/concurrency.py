"""
Concurrency primitives for bounded oracle fan-out.

``ConcurrencyLimiter`` caps the number of in-flight coroutines and queues the
rest strictly first-come-first-served. ``CancellationToken`` is the shared
cancellation flag threaded through one discovery run.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable, Callable, Deque, TypeVar

from .errors import CancellationError

T = TypeVar("T")


class ConcurrencyLimiter:
    """
    Run at most ``max_concurrent`` tasks at once, queueing the rest in FIFO order.

    A released slot is handed directly to the oldest waiter, so a newcomer can
    never overtake a task that has been queued longer.
    """

    def __init__(self, max_concurrent: int) -> None:
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")
        self._max_concurrent = max_concurrent
        self._running = 0
        self._waiters: Deque[asyncio.Future[None]] = deque()
        self._max_observed = 0

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def running(self) -> int:
        """Tasks currently holding a slot."""
        return self._running

    @property
    def waiting(self) -> int:
        """Callers suspended until a slot frees up."""
        return sum(1 for waiter in self._waiters if not waiter.done())

    @property
    def max_observed(self) -> int:
        """Highest number of simultaneously running tasks seen since construction."""
        return self._max_observed

    async def run(self, task: Callable[[], Awaitable[T]]) -> T:
        """Execute ``task()`` once a slot is available and return its result."""
        await self._acquire()
        try:
            return await task()
        finally:
            self._release()

    async def _acquire(self) -> None:
        if self._running < self._max_concurrent and not self._waiters:
            self._take_slot()
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Slot was handed over just before cancellation; pass it on
                self._release()
            else:
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    pass
            raise

    def _take_slot(self) -> None:
        self._running += 1
        if self._running > self._max_observed:
            self._max_observed = self._running

    def _release(self) -> None:
        # Hand the slot straight to the next live waiter; running count is unchanged
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._running -= 1


class CancellationToken:
    """Cooperative cancellation flag shared by every probe of one discovery."""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._event: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Signal cancellation. Idempotent; the first reason wins."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancellationError(self._reason or "Discovery cancelled")

    async def wait(self) -> None:
        """Resolve once ``cancel`` has been called."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()
