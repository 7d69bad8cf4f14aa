"""
Single-flight keyed cache.

Used for rotating key material that stays valid for a while (megacloud's
player keys, ~1h). Within the validity window every caller gets the stored
value; when it's missing or expired the first caller runs the loader and
everyone arriving meanwhile awaits that same task. Failures are not cached.
"""
from __future__ import annotations
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Hashable

log = logging.getLogger("trawler.cache")


class SingleFlightCache:
    def __init__(self, ttl: float, *, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, tuple[Any, float]] = {}
        self._inflight: dict[Hashable, asyncio.Task] = {}

    async def get(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        entry = self._entries.get(key)
        if entry is not None and entry[1] > self._clock():
            return entry[0]

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, loader))
            task.add_done_callback(self._collect)
            self._inflight[key] = task
        # one caller giving up must not cancel the load for the others
        return await asyncio.shield(task)

    @staticmethod
    def _collect(task: asyncio.Task):
        # retrieve the outcome so a load nobody awaits any more is not reported as unhandled
        if not task.cancelled() and task.exception() is not None:
            log.debug("key load failed: %r", task.exception())

    async def _load(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        try:
            value = await loader()
        finally:
            self._inflight.pop(key, None)
        self._entries[key] = (value, self._clock() + self.ttl)
        log.debug("cached %r for %ss", key, self.ttl)
        return value

    def invalidate(self, key: Hashable | None = None):
        """Drop one key, or everything when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry[1] > self._clock()
