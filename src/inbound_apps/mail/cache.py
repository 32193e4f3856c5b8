"""Read-through query cache with stale-while-revalidate, and a polling timer.

``QueryCache`` holds the thread list and thread detail views.  Fresh entries
are served from memory; stale entries are served immediately while one
background revalidation per key runs.  ``Poller`` drives the fixed-interval
refresh of a displayed view and is cancelled when the view goes away.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

QueryKey = tuple[Any, ...]

DEFAULT_STALE_TIME = 10.0
DEFAULT_REFETCH_INTERVAL = 30.0


@dataclass
class CacheEntry:
    value: Any
    updated_at: float


class QueryCache:
    """In-memory cache of upstream reads keyed by tuples.

    Args:
        stale_time: Seconds after which an entry is considered stale.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        *,
        stale_time: float = DEFAULT_STALE_TIME,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_time = stale_time
        self._clock = clock
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._revalidating: dict[QueryKey, asyncio.Task[None]] = {}
        # Bumped by invalidate(); a fetch started under an older generation is discarded.
        self._generations: dict[QueryKey, int] = {}

    def peek(self, key: QueryKey) -> Any | None:
        """Return the cached value for *key* without fetching."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def is_stale(self, key: QueryKey) -> bool:
        """Return True if *key* is missing or older than the stale time."""
        entry = self._entries.get(key)
        if entry is None:
            return True
        return self._clock() - entry.updated_at >= self._stale_time

    def is_revalidating(self, key: QueryKey) -> bool:
        return key in self._revalidating

    async def fetch(self, key: QueryKey, fetcher: Callable[[], Awaitable[T]]) -> T:
        """Return cached data for *key*, fetching or revalidating as needed.

        A missing entry is fetched and awaited; a failure propagates and
        nothing is stored.  A stale entry is returned as-is while a
        background revalidation refreshes it.

        Args:
            key: Cache key.
            fetcher: Zero-argument coroutine function producing fresh data.

        Returns:
            The cached or freshly fetched value.
        """
        entry = self._entries.get(key)
        if entry is None:
            return await self.refresh(key, fetcher)
        if self.is_stale(key):
            self._schedule_revalidation(key, fetcher)
        value: T = entry.value
        return value

    async def refresh(self, key: QueryKey, fetcher: Callable[[], Awaitable[T]]) -> T:
        """Fetch *key* unconditionally and store the result.

        The result is returned but not stored when *key* was invalidated
        while the fetch was in flight.
        """
        generation = self._generations.setdefault(key, 0)
        value = await fetcher()
        if self._generations.get(key) == generation:
            self._entries[key] = CacheEntry(value=value, updated_at=self._clock())
        else:
            logger.debug("Discarded fetch result invalidated in flight", key=key)
        return value

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with *prefix*.

        In-flight revalidations for those keys are cancelled, and in-flight
        refreshes will not store their result, so nothing older can be
        written back after the invalidation.

        Returns:
            The number of entries dropped.
        """
        size = len(prefix)
        for key in self._generations:
            if key[:size] == prefix:
                self._generations[key] += 1
        dropped = [key for key in self._entries if key[:size] == prefix]
        for key in dropped:
            del self._entries[key]
        for key in [k for k in self._revalidating if k[:size] == prefix]:
            self._revalidating.pop(key).cancel()
        if dropped:
            logger.debug("Cache entries invalidated", prefix=prefix, count=len(dropped))
        return len(dropped)

    async def wait_idle(self) -> None:
        """Wait until every background revalidation has finished."""
        while self._revalidating:
            await asyncio.gather(*self._revalidating.values(), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel in-flight revalidations."""
        tasks = list(self._revalidating.values())
        self._revalidating.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _schedule_revalidation(
        self, key: QueryKey, fetcher: Callable[[], Awaitable[Any]]
    ) -> None:
        if key in self._revalidating:
            return
        task = asyncio.ensure_future(self._revalidate(key, fetcher))
        self._revalidating[key] = task

        def _done(finished: asyncio.Task[None]) -> None:
            if self._revalidating.get(key) is finished:
                del self._revalidating[key]

        task.add_done_callback(_done)

    async def _revalidate(self, key: QueryKey, fetcher: Callable[[], Awaitable[Any]]) -> None:
        try:
            await self.refresh(key, fetcher)
        except Exception:
            # Previous data stays on screen; the next read or poll retries.
            logger.warning("Background revalidation failed", key=key, exc_info=True)


class Poller:
    """Run an async callback on a fixed interval until stopped.

    Usage::

        async with Poller(view.refresh, interval=30.0):
            ...  # view is displayed; refreshed every 30 seconds

    Args:
        callback: Coroutine function invoked on every tick.
        interval: Seconds between ticks.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval: float = DEFAULT_REFETCH_INTERVAL,
    ) -> None:
        self._callback = callback
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        """Cancel the timer; no callback runs after this returns."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> Poller:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._callback()
            except Exception:
                logger.warning("Poll refresh failed", exc_info=True)
