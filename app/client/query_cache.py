"""Client-side cache of GET results that refetches on invalidation.

Entries never expire on their own unless a TTL is given; they go stale
only when the InvalidationBus fires (e.g. a company switch). Each stale
entry is refetched in its own task, and every refetch goes through the
RequestDispatcher at the moment it runs. A result that arrives after its
path was invalidated again is dropped, so a slow response for the
previous company never replaces a newer one.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from app.client.dispatcher import ApiError, RequestDispatcher
from app.client.invalidation import InvalidationBus

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    fetched_at: float
    stale: bool = False
    error: Exception | None = None


class QueryCache:
    def __init__(
        self,
        dispatcher: RequestDispatcher,
        bus: InvalidationBus,
        ttl: float | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.ttl = ttl
        self._entries: dict[str, _Entry] = {}
        # Bumped on every invalidation of a path
        self._generations: dict[str, int] = {}
        self._refetches: set[asyncio.Task] = set()
        self._unsubscribe = bus.subscribe(self.invalidate_all)

    async def fetch(self, path: str) -> Any:
        """Return the cached result for ``path``, loading it if needed."""
        entry = self._entries.get(path)
        if entry is not None and self._is_fresh(entry):
            return entry.value
        return await self._load(path)

    def peek(self, path: str) -> Any | None:
        entry = self._entries.get(path)
        return entry.value if entry is not None else None

    def invalidate(self, path: str) -> None:
        if path in self._entries:
            self._entries[path].stale = True
            self._generations[path] = self._generations.get(path, 0) + 1
            self._schedule(path)

    def invalidate_all(self) -> None:
        for path, entry in self._entries.items():
            entry.stale = True
            self._generations[path] = self._generations.get(path, 0) + 1
            self._schedule(path)

    async def settle(self) -> None:
        """Wait until every scheduled refetch has finished."""
        while self._refetches:
            await asyncio.gather(*list(self._refetches))

    def close(self) -> None:
        self._unsubscribe()
        for task in self._refetches:
            task.cancel()

    # ── Internal helpers ──────────────────────────────────────

    def _is_fresh(self, entry: _Entry) -> bool:
        if entry.stale or entry.error is not None:
            return False
        return self.ttl is None or time.monotonic() - entry.fetched_at <= self.ttl

    def _schedule(self, path: str) -> None:
        task = asyncio.create_task(self._refetch(path))
        self._refetches.add(task)
        task.add_done_callback(self._refetches.discard)

    async def _load(self, path: str) -> Any:
        generation = self._generations.get(path, 0)
        response = await self.dispatcher.dispatch("GET", path)
        value = response.json()
        if self._generations.get(path, 0) == generation:
            self._entries[path] = _Entry(value=value, fetched_at=time.monotonic())
        else:
            logger.debug("Dropped out-of-date result for %s", path)
        return value

    async def _refetch(self, path: str) -> None:
        generation = self._generations.get(path, 0)
        try:
            await self._load(path)
        except (ApiError, httpx.HTTPError, ValueError) as exc:
            if self._generations.get(path, 0) != generation:
                return
            # Kept stale with the error; the next fetch retries and raises
            logger.warning("Refetch of %s failed: %s", path, exc)
            entry = self._entries.get(path)
            if entry is not None:
                entry.error = exc
