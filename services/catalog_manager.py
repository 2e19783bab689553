"""Fortune catalog manager combining storage, caching and draw rules."""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Iterator, List, Optional

from config import Config
from core import get_logger
from core.constants import DrawDefaults
from core.exceptions import ServiceError, StorageError
from database.connection import StorageConnection
from database.migrations import SeedEntries, reset_catalog, run_migrations, seed_catalog
from database.models import (
    CacheStats,
    CooldownStatus,
    DatabaseStats,
    DrawHistoryEntry,
    DrawRecord,
    Fortune,
    UserStats,
)
from database.repositories import DrawRecordStore, FortuneRepository
from database.seed_data import FORTUNE_SEED
from services.cache import FortuneCatalogCache
from services.draw_service import Chooser, Clock, DrawOutcome, DrawService, ServiceFailure, utcnow

logger = get_logger(__name__)


class CatalogManager:
    """Public surface of the fortune core.

    Owns schema setup and idempotent seeding, aggregate statistics, and
    cache invalidation after catalog-altering operations. Storage failures
    on read paths surface as :class:`ServiceError`; draws report them as a
    :class:`ServiceFailure` outcome.
    """

    def __init__(
        self,
        storage: StorageConnection,
        cache: FortuneCatalogCache,
        cooldown_seconds: int = DrawDefaults.COOLDOWN_SECONDS,
        seed_entries: SeedEntries = FORTUNE_SEED,
        clock: Clock = utcnow,
        chooser: Optional[Chooser] = None,
    ) -> None:
        self.storage = storage
        self.cache = cache
        self.seed_entries = seed_entries
        self.fortunes = FortuneRepository(storage)
        self.records = DrawRecordStore(storage)
        self.draw_service = DrawService(
            fortunes=self.fortunes,
            records=self.records,
            cache=cache,
            cooldown_seconds=cooldown_seconds,
            clock=clock,
            chooser=chooser,
        )
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "CatalogManager":
        return cls(
            storage=StorageConnection.from_config(config),
            cache=FortuneCatalogCache(ttl=config.cache_ttl),
            cooldown_seconds=config.cooldown_seconds,
            **kwargs,
        )

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except StorageError as exc:
            logger.error("%s failed (%s)", operation, exc.kind.value)
            raise ServiceError(f"{operation} is temporarily unavailable") from exc

    # Lifecycle ---------------------------------------------------------

    async def initialize(self) -> None:
        """Create the schema, seed the catalog once and warm the cache."""
        async with self._init_lock:
            if self._initialized:
                return
            with self._guard("Initialization"):
                await self.storage.get_connection()
                await run_migrations(self.storage)
                await seed_catalog(self.storage, self.seed_entries)
                self.cache.clear()
                catalog = await self.draw_service.load_catalog()
            self._initialized = True
            logger.info("Fortune catalog ready with %s entries", len(catalog))

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    async def reinitialize(self) -> None:
        """Drop all draws and fortunes, reseed, then clear the cache."""
        await self._ensure_initialized()
        with self._guard("Reinitialization"):
            await reset_catalog(self.storage, self.seed_entries)
        self.cache.clear()

    async def close(self) -> None:
        await self.storage.close()
        self.cache.clear()
        self._initialized = False

    # Catalog -----------------------------------------------------------

    async def get_all_fortunes(self) -> List[Fortune]:
        await self._ensure_initialized()
        with self._guard("Loading the catalog"):
            return await self.draw_service.load_catalog()

    async def get_fortune_by_id(self, fortune_id: int) -> Optional[Fortune]:
        await self._ensure_initialized()
        cached = self.cache.get_by_id(fortune_id)
        if cached is not None:
            return cached
        with self._guard("Fortune lookup"):
            return await self.fortunes.get_by_id(fortune_id)

    async def get_fortunes_by_category(self, category: str) -> List[Fortune]:
        await self._ensure_initialized()
        cached = self.cache.get_by_category(category)
        if cached is not None:
            return cached
        with self._guard("Category lookup"):
            catalog = await self.draw_service.load_catalog()
        return [fortune for fortune in catalog if fortune.category == category]

    # Draws -------------------------------------------------------------

    async def draw_fortune(self, user_token: str) -> DrawOutcome:
        try:
            await self._ensure_initialized()
        except ServiceError:
            return ServiceFailure()
        return await self.draw_service.draw(user_token)

    async def record_draw(self, user_token: str, fortune_id: int) -> DrawRecord:
        """Insert a draw directly; constraint errors propagate typed."""
        await self._ensure_initialized()
        return await self.records.record_draw(user_token, fortune_id)

    async def get_available_fortunes(self, user_token: str) -> List[dict]:
        await self._ensure_initialized()
        with self._guard("Listing available fortunes"):
            available = await self.draw_service.get_available_fortunes(user_token)
        return [fortune.to_dict() for fortune in available]

    async def get_draw_history(self, user_token: str) -> List[DrawHistoryEntry]:
        await self._ensure_initialized()
        with self._guard("Loading draw history"):
            return await self.records.get_draw_history(user_token)

    async def get_cooldown_status(self, user_token: str) -> CooldownStatus:
        await self._ensure_initialized()
        with self._guard("Cooldown lookup"):
            return await self.draw_service.get_cooldown_status(user_token)

    # Statistics --------------------------------------------------------

    async def get_user_stats(self, user_token: str) -> UserStats:
        await self._ensure_initialized()
        with self._guard("Loading user stats"):
            catalog = await self.draw_service.load_catalog()
            drawn = await self.records.get_drawn_ids(user_token)
            total_drawn = await self.records.get_user_draw_count(user_token)
            last_draw = await self.records.get_last_draw_time(user_token)

        remaining = sum(1 for fortune in catalog if fortune.id not in drawn)
        return UserStats(
            total_drawn=total_drawn,
            total_available=len(catalog),
            remaining_count=remaining,
            last_draw_time=last_draw,
        )

    async def get_database_stats(self) -> DatabaseStats:
        await self._ensure_initialized()
        with self._guard("Loading database stats"):
            fortune_count = await self.fortunes.get_count()
            draw_count = await self.records.get_total_count()
            unique_users = await self.records.get_unique_user_count()
        return DatabaseStats(
            fortune_count=fortune_count,
            user_draw_count=draw_count,
            unique_users=unique_users,
        )

    async def check_connection(self) -> bool:
        return await self.storage.health_check()

    # Cache -------------------------------------------------------------

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()
