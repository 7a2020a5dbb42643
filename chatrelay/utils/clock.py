"""Time primitives used by the polling code.

The transcription poll loop never calls :func:`asyncio.sleep` directly; it
waits through a :class:`Deadline`, which owns the invocation's wall-clock
budget and can be cancelled from outside while a wait is in progress.
"""

from __future__ import annotations

import asyncio
import math
import time
from typing import Awaitable, Protocol, TypeVar

T = TypeVar("T")


class Clock(Protocol):
    """Elapsed-time and sleep capability."""

    def monotonic(self) -> float:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Real clock backed by :func:`time.monotonic` and :func:`asyncio.sleep`."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class DeadlineExceeded(RuntimeError):
    """Raised when the invocation budget is spent or the deadline was cancelled."""


class Deadline:
    """Wall-clock budget for a single invocation with cooperative cancellation."""

    def __init__(self, clock: Clock, budget_seconds: float | None) -> None:
        self._clock = clock
        self._expires_at = (
            math.inf if budget_seconds is None else clock.monotonic() + budget_seconds
        )
        self._cancelled = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def unbounded(cls, clock: Clock | None = None) -> "Deadline":
        return cls(clock or SystemClock(), None)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock.monotonic())

    def expired(self) -> bool:
        return self.cancelled or self.remaining() <= 0

    def cancel(self) -> None:
        """Abort any in-flight or future wait on this deadline.

        May be called from any thread; waiters are woken on the loop that
        awaits the deadline.
        """

        loop = self._loop
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None
        if loop is None or loop is current or loop.is_closed():
            self._cancelled.set()
        else:
            loop.call_soon_threadsafe(self._cancelled.set)

    def _bind_loop(self) -> None:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

    def check(self) -> None:
        if self.cancelled:
            raise DeadlineExceeded("deadline cancelled")
        if self.remaining() <= 0:
            raise DeadlineExceeded("deadline exceeded")

    def bound(self, timeout: float) -> float:
        """Clamp a network timeout so it never outlives the deadline."""

        self.check()
        return min(timeout, self.remaining())

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless the deadline expires or is cancelled first."""

        self._bind_loop()
        self.check()
        delay = min(seconds, self.remaining())
        sleeper = asyncio.ensure_future(self._clock.sleep(delay))
        watcher = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait(
                {sleeper, watcher},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (sleeper, watcher):
                if not task.done():
                    task.cancel()
        if sleeper.done() and not sleeper.cancelled():
            sleeper.result()
        self.check()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the deadline expires or is cancelled first.

        The pending work is cancelled when the deadline wins.
        """

        self._bind_loop()
        work = asyncio.ensure_future(awaitable)
        try:
            self.check()
        except DeadlineExceeded:
            work.cancel()
            raise
        remaining = self.remaining()
        watcher = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait(
                {work, watcher},
                timeout=None if math.isinf(remaining) else remaining,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (work, watcher):
                if not task.done():
                    task.cancel()
        if work.done() and not work.cancelled():
            return work.result()
        self.check()
        raise DeadlineExceeded("deadline exceeded")


__all__ = ["Clock", "Deadline", "DeadlineExceeded", "SystemClock"]
