"""Read-through cache over the immutable fortune catalog."""

from __future__ import annotations

import asyncio
import math
import time
from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Awaitable, Callable, Iterable, List, Mapping, Optional, Sequence

from cachetools import TLRUCache

from core import get_logger
from core.constants import CacheDefaults
from database.models import CacheStats, Fortune

logger = get_logger(__name__)

Timer = Callable[[], float]
CatalogLoader = Callable[[], Awaitable[Sequence[Fortune]]]


@dataclass(frozen=True)
class CatalogSnapshot:
    """All cached views, derived from one population call."""

    fortunes: tuple[Fortune, ...]
    by_id: Mapping[int, Fortune]
    by_category: Mapping[str, tuple[Fortune, ...]]
    stamped_at: float

    @classmethod
    def build(cls, fortunes: Iterable[Fortune], stamped_at: float) -> "CatalogSnapshot":
        items = tuple(fortunes)
        grouped: dict[str, list[Fortune]] = defaultdict(list)
        for fortune in items:
            grouped[fortune.category].append(fortune)
        return cls(
            fortunes=items,
            by_id=MappingProxyType({fortune.id: fortune for fortune in items}),
            by_category=MappingProxyType(
                {category: tuple(group) for category, group in grouped.items()}
            ),
            stamped_at=stamped_at,
        )


class FortuneCatalogCache:
    """TTL snapshot cache of the fortune catalog.

    A snapshot is stale once its age exceeds ``ttl``; at exactly ``ttl``
    seconds it is still served.

    The three views (list, id map, category map) live in one snapshot
    stored under a single key, so expiry or :meth:`clear` always drops them
    together and a hit never mixes data from different loads. Every read
    expires stale data first and reports a miss as ``None``.
    """

    _KEY = "catalog"

    def __init__(self, ttl: float = CacheDefaults.TTL, timer: Timer = time.monotonic) -> None:
        """Initialize the cache.

        Args:
            ttl: Seconds a snapshot stays valid
            timer: Clock used for stamping and expiry
        """
        self.ttl = ttl
        self._timer = timer
        self._cache: TLRUCache = TLRUCache(maxsize=1, ttu=self._expires_at, timer=timer)
        self._load_lock = asyncio.Lock()
        self._generation = 0

    def _expires_at(self, key: str, snapshot: CatalogSnapshot, now: float) -> float:
        # Entries expire once now >= the returned time; stale means age > ttl
        return math.nextafter(now + self.ttl, math.inf)

    def _snapshot(self) -> Optional[CatalogSnapshot]:
        self._cache.expire()
        return self._cache.get(self._KEY)

    def set_all(self, fortunes: Iterable[Fortune]) -> None:
        """Replace the cached catalog with ``fortunes`` stamped now."""
        snapshot = CatalogSnapshot.build(fortunes, stamped_at=self._timer())
        self._cache[self._KEY] = snapshot
        logger.debug("Catalog cache populated with %s fortunes", len(snapshot.fortunes))

    def get_all(self) -> Optional[List[Fortune]]:
        snapshot = self._snapshot()
        if snapshot is None:
            return None
        return list(snapshot.fortunes)

    def get_by_id(self, fortune_id: int) -> Optional[Fortune]:
        snapshot = self._snapshot()
        if snapshot is None:
            return None
        return snapshot.by_id.get(fortune_id)

    def get_by_category(self, category: str) -> Optional[List[Fortune]]:
        """Cached fortunes of ``category``; ``[]`` for an unknown category."""
        snapshot = self._snapshot()
        if snapshot is None:
            return None
        return list(snapshot.by_category.get(category, ()))

    def get_excluding(self, exclude_ids: Iterable[int]) -> Optional[List[Fortune]]:
        """Cached fortunes whose id is not in ``exclude_ids``."""
        snapshot = self._snapshot()
        if snapshot is None:
            return None
        excluded = set(exclude_ids)
        return [fortune for fortune in snapshot.fortunes if fortune.id not in excluded]

    async def get_or_load(self, loader: CatalogLoader) -> List[Fortune]:
        """Return the cached catalog, loading it once on a miss.

        Concurrent misses wait for a single ``loader`` call. A load that
        races with :meth:`clear` is returned but not cached.
        """
        cached = self.get_all()
        if cached is not None:
            return cached

        async with self._load_lock:
            cached = self.get_all()
            if cached is not None:
                return cached

            generation = self._generation
            fortunes = list(await loader())
            if generation == self._generation:
                self.set_all(fortunes)
            return fortunes

    def clear(self) -> None:
        """Drop every cached view."""
        self._cache.clear()
        self._generation += 1
        logger.debug("Catalog cache cleared")

    def stats(self) -> CacheStats:
        snapshot = self._snapshot()
        if snapshot is None:
            return CacheStats(total_fortunes=0, categories=0, cache_age=None, is_expired=True)
        return CacheStats(
            total_fortunes=len(snapshot.by_id),
            categories=len(snapshot.by_category),
            cache_age=self._timer() - snapshot.stamped_at,
            is_expired=False,
        )
