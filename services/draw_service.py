"""Fortune draw rules: cooldown, candidate set, secure selection, recording."""

from __future__ import annotations

import math
import secrets
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Union

from core import get_logger
from core.constants import DrawDefaults
from core.exceptions import ForeignKeyError, StorageError, UniqueConstraintError
from database.models import CooldownStatus, Fortune
from database.repositories import DrawRecordStore, FortuneRepository
from services.cache import FortuneCatalogCache

logger = get_logger(__name__)

Clock = Callable[[], datetime]
Chooser = Callable[[Sequence[Fortune]], Fortune]

_secure_random = secrets.SystemRandom()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DrawSuccess:
    id: int
    text: str
    category: str
    is_new: bool = True


@dataclass(frozen=True)
class CooldownActive:
    remaining: int


@dataclass(frozen=True)
class PoolExhausted:
    message: str = "All fortunes have already been drawn"


@dataclass(frozen=True)
class ConflictRetryable:
    fortune_id: int
    message: str = "Draw conflicted with a concurrent draw, retry"


@dataclass(frozen=True)
class ServiceFailure:
    message: str = "Draw service temporarily unavailable"


DrawOutcome = Union[DrawSuccess, CooldownActive, PoolExhausted, ConflictRetryable, ServiceFailure]


class DrawService:
    """Enforces one draw per cooldown window and one draw per fortune per user.

    The cooldown limits the rate of draws; the storage uniqueness constraint
    limits repetition. Same-user races are not locked out here: the losing
    insert fails the constraint and is reported as :class:`ConflictRetryable`.
    Expected outcomes are returned, never raised.
    """

    def __init__(
        self,
        fortunes: FortuneRepository,
        records: DrawRecordStore,
        cache: FortuneCatalogCache,
        cooldown_seconds: int = DrawDefaults.COOLDOWN_SECONDS,
        clock: Clock = utcnow,
        chooser: Optional[Chooser] = None,
    ) -> None:
        self.fortunes = fortunes
        self.records = records
        self.cache = cache
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._choose: Chooser = chooser or _secure_random.choice

    # Catalog -----------------------------------------------------------

    async def load_catalog(self) -> List[Fortune]:
        """Full catalog, cache first, storage on a miss."""
        return await self.cache.get_or_load(self.fortunes.get_all)

    async def get_available_fortunes(self, user_token: str) -> List[Fortune]:
        """Catalog minus the fortunes ``user_token`` has drawn."""
        drawn = await self.records.get_drawn_ids(user_token)
        cached = self.cache.get_excluding(drawn)
        if cached is not None:
            return cached
        catalog = await self.load_catalog()
        return [fortune for fortune in catalog if fortune.id not in drawn]

    # Cooldown ----------------------------------------------------------

    def _elapsed_seconds(self, last_draw: datetime) -> int:
        elapsed = math.floor((self._clock() - last_draw).total_seconds())
        return max(0, elapsed)

    async def get_remaining_cooldown(self, user_token: str) -> int:
        """Seconds until ``user_token`` may draw again, ``0`` when allowed."""
        last_draw = await self.records.get_last_draw_time(user_token)
        if last_draw is None:
            return 0
        elapsed = self._elapsed_seconds(last_draw)
        if elapsed < self.cooldown_seconds:
            return self.cooldown_seconds - elapsed
        return 0

    async def get_cooldown_status(self, user_token: str) -> CooldownStatus:
        last_draw = await self.records.get_last_draw_time(user_token)
        if last_draw is None:
            return CooldownStatus(
                in_cooldown=False, remaining_seconds=0, next_draw_time=None, last_draw_time=None
            )

        elapsed = self._elapsed_seconds(last_draw)
        remaining = max(0, self.cooldown_seconds - elapsed)
        next_draw = last_draw + timedelta(seconds=self.cooldown_seconds) if remaining else None
        return CooldownStatus(
            in_cooldown=remaining > 0,
            remaining_seconds=remaining,
            next_draw_time=next_draw,
            last_draw_time=last_draw,
        )

    # Drawing -----------------------------------------------------------

    async def draw(self, user_token: str) -> DrawOutcome:
        """Run the draw protocol for ``user_token``.

        Returns:
            DrawSuccess, or CooldownActive / PoolExhausted when nothing was
            written, ConflictRetryable when a concurrent draw recorded the
            same fortune first, ServiceFailure on storage trouble
        """
        try:
            remaining = await self.get_remaining_cooldown(user_token)
            if remaining:
                logger.debug("Cooldown active for %s: %ss left", user_token, remaining)
                return CooldownActive(remaining=remaining)

            candidates = await self.get_available_fortunes(user_token)
        except StorageError as exc:
            logger.error("Draw for %s failed before recording (%s)", user_token, exc.kind.value)
            return ServiceFailure()

        if not candidates:
            logger.debug("Pool exhausted for %s", user_token)
            return PoolExhausted()

        selected = self._choose(candidates)

        try:
            await self.records.record_draw(user_token, selected.id, timestamp=self._clock())
        except UniqueConstraintError:
            logger.info("Concurrent draw of fortune %s for %s, reporting conflict", selected.id, user_token)
            return ConflictRetryable(fortune_id=selected.id)
        except ForeignKeyError:
            logger.error(
                "Selected fortune %s is missing from the catalog; cache and storage disagree",
                selected.id,
            )
            return ServiceFailure()
        except StorageError as exc:
            logger.error("Recording draw for %s failed (%s)", user_token, exc.kind.value)
            return ServiceFailure()

        logger.info("User %s drew fortune %s", user_token, selected.id)
        return DrawSuccess(id=selected.id, text=selected.text, category=selected.category)

    # Optional weighting ------------------------------------------------

    def select_weighted(
        self,
        candidates: Sequence[Fortune],
        prefer_category: Optional[str] = None,
        balance_categories: bool = False,
    ) -> Fortune:
        """Pick a candidate with optional category weighting.

        ``prefer_category`` doubles the weight of matching fortunes.
        ``balance_categories`` first picks a category uniformly, then a
        fortune within it. Not used by :meth:`draw`.

        Raises:
            ValueError: If ``candidates`` is empty
        """
        if not candidates:
            raise ValueError("No candidates to choose from")

        pool = list(candidates)
        if prefer_category:
            pool.extend(f for f in candidates if f.category == prefer_category)

        if balance_categories:
            groups: dict[str, list[Fortune]] = defaultdict(list)
            for fortune in candidates:
                groups[fortune.category].append(fortune)
            category = _secure_random.choice(sorted(groups))
            pool = groups[category]

        return self._choose(pool)
