"""
Process-wide sliding window rate limiter for outbound messages.

At most ``capacity`` sends are admitted in any trailing ``window`` seconds,
across every guild and channel. Admission is checked and recorded atomically
under an :class:`asyncio.Lock`; the send itself always runs after the lock is
released.

A caller that cannot be admitted sleeps until the oldest recorded send leaves
the window, then checks again. That sleep is an ordinary ``asyncio.sleep`` so
cancelling the calling task aborts the wait, and ``timeout`` bounds it.
Admission order between concurrent waiters is not guaranteed to be FIFO; only
the aggregate bound is.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional, TypeVar

from fixembed.util.logger import get_logger

logger = get_logger("rate_limiter")

DEFAULT_CAPACITY = 5
DEFAULT_WINDOW_SECONDS = 1.0
# Lower bound on a single wait so clock jitter never turns into a busy loop
MIN_WAIT_SECONDS = 0.001

T = TypeVar("T")


class RateLimitTimeout(Exception):
    """Raised when a caller was not admitted within its timeout."""


class SlidingWindowRateLimiter:
    """
    Sliding window limiter guarding every outbound send.

    Parameters
    ----------
    capacity:
        Maximum sends admitted per window.
    window:
        Window length in seconds.
    clock:
        Monotonic clock returning seconds; injectable for tests.
    sleep:
        Coroutine used to wait; injectable for tests.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        window: float = DEFAULT_WINDOW_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.capacity = capacity
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self._timestamps: Deque[float] = deque()
        self._lock = asyncio.Lock()

    def _evict(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window:
            self._timestamps.popleft()

    def in_window(self) -> int:
        """Number of sends recorded in the current window."""
        self._evict(self._clock())
        return len(self._timestamps)

    async def _try_admit(self) -> float:
        """Admit and return 0.0, or return how long to wait before retrying."""
        async with self._lock:
            now = self._clock()
            self._evict(now)
            if len(self._timestamps) < self.capacity:
                self._timestamps.append(now)
                return 0.0
            return max(self._timestamps[0] + self.window - now, MIN_WAIT_SECONDS)

    async def _wait_for_slot(self) -> None:
        while True:
            delay = await self._try_admit()
            if delay == 0.0:
                return
            logger.debug("[RATE LIMITER] Window full, waiting %.3fs", delay)
            await self._sleep(delay)

    async def acquire(self, timeout: Optional[float] = None) -> None:
        """
        Block until a send is admitted.

        Args:
            timeout: Seconds to wait at most; ``None`` waits indefinitely.

        Raises:
            RateLimitTimeout: If no slot freed up within ``timeout``.
        """
        if timeout is None:
            await self._wait_for_slot()
            return
        try:
            async with asyncio.timeout(timeout):
                await self._wait_for_slot()
        except TimeoutError as exc:
            raise RateLimitTimeout(f"not admitted within {timeout}s") from exc

    async def send(
        self,
        send: Callable[..., Awaitable[T]],
        *args,
        timeout: Optional[float] = None,
        **kwargs,
    ) -> T:
        """
        Wait for admission, then await ``send(*args, **kwargs)`` outside the lock.

        Whatever the send returns or raises is passed through unchanged.
        """
        await self.acquire(timeout)
        return await send(*args, **kwargs)
