"""Client-side query cache keyed by request path tuples.

Keys look like ``("/api/conversations", 1, "messages")``. Invalidating a
key marks it and every key it prefixes stale; stale entries with a fetcher
are re-fetched in the background, with at most one request in flight per
key.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.core.config import settings

logger = logging.getLogger(__name__)

Key = tuple
Fetcher = Callable[[], Awaitable[Any]]


@dataclass(eq=False)
class CacheEntry:
    key: Key
    data: Any = None
    stale: bool = True
    fetched_at: datetime | None = None
    invalidations: int = 0
    fetches: int = 0
    error: BaseException | None = None


def matches(prefix: Key, key: Key) -> bool:
    return key[: len(prefix)] == prefix


class QueryCache:
    def __init__(self) -> None:
        self._entries: dict[Key, CacheEntry] = {}
        self._fetchers: dict[Key, Fetcher] = {}
        self._inflight: dict[Key, asyncio.Task] = {}

    def __contains__(self, key: Key) -> bool:
        return key in self._entries

    def entry(self, key: Key) -> CacheEntry:
        if key not in self._entries:
            self._entries[key] = CacheEntry(key=key)
        return self._entries[key]

    def register(self, key: Key, fetcher: Fetcher) -> CacheEntry:
        self._fetchers[key] = fetcher
        return self.entry(key)

    def get(self, key: Key) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set(self, key: Key, data: Any) -> None:
        entry = self.entry(key)
        entry.data = data
        entry.stale = False
        entry.fetched_at = datetime.utcnow()

    def is_inflight(self, key: Key) -> bool:
        task = self._inflight.get(key)
        return task is not None and not task.done()

    async def query(self, key: Key, fetcher: Fetcher | None = None) -> Any:
        """Return cached data, fetching first when missing or stale."""
        if fetcher is not None:
            self.register(key, fetcher)
        entry = self.entry(key)
        if entry.stale or self.is_inflight(key):
            return await self.fetch(key)
        return entry.data

    async def fetch(self, key: Key) -> Any:
        return await self._start(key)

    def _start(self, key: Key) -> asyncio.Task:
        task = self._inflight.get(key)
        if task is not None and not task.done():
            return task
        if key not in self._fetchers:
            raise KeyError(f"no fetcher registered for {key!r}")
        task = asyncio.get_running_loop().create_task(self._run(key))
        self._inflight[key] = task
        return task

    async def _run(self, key: Key) -> Any:
        entry = self.entry(key)
        entry.fetches += 1
        try:
            data = await self._fetchers[key]()
        except Exception as exc:
            entry.error = exc
            raise
        finally:
            self._inflight.pop(key, None)
        entry.error = None
        self.set(key, data)
        return data

    def invalidate(self, *prefixes: Key) -> list[Key]:
        """Mark entries under any of ``prefixes`` stale and re-fetch those with a fetcher.

        Each matching entry is touched once however many prefixes cover it.
        Returns the keys that matched. Without a running event loop the
        entries are only marked; the next ``query`` re-fetches them.
        """
        matched = [key for key in self._entries if any(matches(p, key) for p in prefixes)]
        try:
            asyncio.get_running_loop()
            running = True
        except RuntimeError:
            running = False
        for key in matched:
            entry = self._entries[key]
            entry.stale = True
            entry.invalidations += 1
            if running and key in self._fetchers:
                task = self._start(key)
                task.add_done_callback(_log_failure)
        if matched:
            logger.debug("cache: invalidated %s -> %d entr(ies)", prefixes, len(matched))
        return matched

    async def settle(self) -> None:
        """Wait for every in-flight re-fetch to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight.values()), return_exceptions=True)


def _log_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("cache: background re-fetch failed: %r", exc)


class NotificationPoller:
    """Invalidates the notifications key on a fixed interval."""

    def __init__(self, cache: QueryCache, interval: float | None = None, key: Key = ("/api/notifications",)):
        self.cache = cache
        self.interval = interval if interval is not None else settings.CLIENT_NOTIFICATIONS_POLL_SECONDS
        self.key = key
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.cache.invalidate(self.key)
