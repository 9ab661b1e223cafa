"""Process-wide cache of upstream status documents.

One entry per target URL holds the last document fetched and when it
arrived. An entry younger than the freshness window is served without
touching the network; anything older triggers a refetch. A failed
refetch leaves the previous entry in place.

The lock only guards the dictionary. Fetches run outside it, so two
connections that both find a stale entry will both fetch, and the later
write wins.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from statusrelay.domain.models import CacheEntry, StatusProjection
from statusrelay.relay.extractor import extract_status
from statusrelay.upstream.base import SchemaMismatchError, StatusSource

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW = 0.4


class ResponseCache:
    """Freshness-windowed memo of the last document per target."""

    def __init__(
        self,
        freshness_window: float = DEFAULT_FRESHNESS_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._freshness_window = freshness_window
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    @property
    def freshness_window(self) -> float:
        return self._freshness_window

    def __len__(self) -> int:
        return len(self._entries)

    async def get_fresh(self, target: str) -> CacheEntry | None:
        """Return the entry for ``target`` only if it is inside the window."""
        async with self._lock:
            entry = self._entries.get(target)
        if entry is None:
            return None
        if entry.age(self._clock()) < self._freshness_window:
            return entry
        return None

    async def store(self, target: str, document: Any) -> CacheEntry:
        """Overwrite the entry for ``target`` with ``document``."""
        entry = CacheEntry(fetched_at=self._clock(), document=document)
        async with self._lock:
            self._entries[target] = entry
        return entry

    async def get_or_fetch(self, target: str, source: StatusSource) -> StatusProjection:
        """Return the projection for ``target``, fetching only if stale.

        Raises:
            FetchError: The upstream fetch failed. The cache is unchanged.
            SchemaMismatchError: The document lacks the expected fields.
        """
        entry = await self.get_fresh(target)
        if entry is not None:
            logger.debug("Cache hit for %s", target)
        else:
            logger.debug("Cache miss for %s, fetching", target)
            document = await source.fetch(target)
            entry = await self.store(target, document)

        projection = extract_status(entry.document)
        if projection is None:
            raise SchemaMismatchError(f"Status document from {target} is missing required fields")
        return projection
