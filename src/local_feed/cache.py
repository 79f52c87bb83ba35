"""In-process TTL cache with single-flight coalescing."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A stored value and the monotonic time at which it stops being served."""

    value: T
    expire_at: float


def _consume_exception(task: asyncio.Future[Any]) -> None:
    # Every waiter may have been cancelled before a failing producer finished.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("In-flight computation failed: %s", task.exception())


class TTLCache:
    """Key -> value memoization with per-entry expiry.

    Concurrent misses for the same key share one in-flight computation:
    the first caller starts the producer as a task, later callers await
    that task instead of starting their own. A failed producer caches
    nothing, so the next call retries.

    Attributes:
        clock: Monotonic time source in seconds, injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self.clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._inflight: dict[str, asyncio.Task[Any]] = {}

    def _live_entry(self, key: str) -> CacheEntry[Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() >= entry.expire_at:
            del self._entries[key]
            return None
        return entry

    async def get_or_compute(
        self,
        key: str,
        ttl: float,
        producer: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the live value for ``key`` or compute and store it.

        Args:
            key: Opaque cache key, e.g. ``"news:economy"``.
            ttl: Seconds the computed value stays live.
            producer: Zero-argument coroutine function doing the real work.

        Returns:
            The cached or freshly computed value.

        Raises:
            Whatever ``producer`` raises; the failure is not cached.
        """
        entry = self._live_entry(key)
        if entry is not None:
            logger.debug("Cache hit: %s", key)
            return entry.value

        task = self._inflight.get(key)
        if task is None:
            logger.debug("Cache miss: %s", key)
            task = asyncio.ensure_future(self._compute(key, ttl, producer))
            task.add_done_callback(_consume_exception)
            self._inflight[key] = task
        else:
            logger.debug("Joining in-flight computation: %s", key)

        # A cancelled waiter must not cancel the computation others share.
        return await asyncio.shield(task)

    async def _compute(
        self,
        key: str,
        ttl: float,
        producer: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            value = await producer()
            self._entries[key] = CacheEntry(value=value, expire_at=self.clock() + ttl)
            return value
        finally:
            self._inflight.pop(key, None)

    def invalidate(self, key: str) -> None:
        """Drop a stored value; an in-flight computation is left alone."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every stored value."""
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._live_entry(key) is not None

    def __len__(self) -> int:
        now = self.clock()
        return sum(1 for e in self._entries.values() if now < e.expire_at)
