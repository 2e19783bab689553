"""Tests for the draw protocol."""

import asyncio

import pytest

from core.exceptions import StorageConnectionError
from database import DrawRecordStore, FortuneRepository
from database.models import Fortune
from services import (
    ConflictRetryable,
    CooldownActive,
    DrawService,
    DrawSuccess,
    PoolExhausted,
    ServiceFailure,
)


def pick_id(fortune_id):
    def chooser(candidates):
        for fortune in candidates:
            if fortune.id == fortune_id:
                return fortune
        return candidates[0]
    return chooser


def make_service(storage, cache, clock, records=None, chooser=None, cooldown=10):
    return DrawService(
        fortunes=FortuneRepository(storage),
        records=records or DrawRecordStore(storage),
        cache=cache,
        cooldown_seconds=cooldown,
        clock=clock,
        chooser=chooser,
    )


class GatedDrawRecordStore(DrawRecordStore):
    """Holds every insert until both concurrent draws reach it."""

    def __init__(self, storage, parties=2):
        super().__init__(storage)
        self.barrier = asyncio.Barrier(parties)

    async def record_draw(self, user_token, fortune_id, timestamp=None):
        await self.barrier.wait()
        return await super().record_draw(user_token, fortune_id, timestamp)


class MissingFortuneRepository(FortuneRepository):
    """Reports a fortune that the database does not hold."""

    async def get_all(self):
        return [Fortune(id=999, text="phantom", category="general")]


@pytest.mark.asyncio
async def test_first_draw_succeeds_and_is_recorded(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)

    outcome = await service.draw("user-a")

    assert isinstance(outcome, DrawSuccess)
    assert outcome.is_new is True
    drawn = await service.records.get_drawn_ids("user-a")
    assert drawn == {outcome.id}
    last = await service.records.get_last_draw_time("user-a")
    assert last == clock()


@pytest.mark.asyncio
async def test_cooldown_reports_remaining_seconds(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)
    assert isinstance(await service.draw("user-a"), DrawSuccess)

    clock.advance(2)
    outcome = await service.draw("user-a")

    assert outcome == CooldownActive(remaining=8)
    assert await service.records.get_user_draw_count("user-a") == 1


@pytest.mark.asyncio
async def test_cooldown_rounds_elapsed_time_down(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)
    await service.draw("user-a")

    clock.advance(9.9)

    assert await service.get_remaining_cooldown("user-a") == 1


@pytest.mark.asyncio
async def test_draw_allowed_exactly_at_cooldown_boundary(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)
    await service.draw("user-a")

    clock.advance(10)

    assert await service.get_remaining_cooldown("user-a") == 0
    assert isinstance(await service.draw("user-a"), DrawSuccess)


@pytest.mark.asyncio
async def test_clock_behind_last_draw_counts_as_zero_elapsed(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)
    await service.draw("user-a")

    clock.advance(-30)

    assert await service.get_remaining_cooldown("user-a") == 10


@pytest.mark.asyncio
async def test_cooldowns_are_per_user(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)

    assert isinstance(await service.draw("user-a"), DrawSuccess)
    assert isinstance(await service.draw("user-b"), DrawSuccess)


@pytest.mark.asyncio
async def test_cooldown_status(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)

    status = await service.get_cooldown_status("user-a")
    assert status.in_cooldown is False
    assert status.last_draw_time is None

    await service.draw("user-a")
    drawn_at = clock()
    clock.advance(3)
    status = await service.get_cooldown_status("user-a")

    assert status.in_cooldown is True
    assert status.remaining_seconds == 7
    assert status.last_draw_time == drawn_at
    assert (status.next_draw_time - drawn_at).total_seconds() == 10


@pytest.mark.asyncio
async def test_user_draws_every_fortune_once_then_pool_is_exhausted(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)
    seen = set()

    for _ in range(50):
        outcome = await service.draw("user-a")
        assert isinstance(outcome, DrawSuccess)
        assert outcome.id not in seen
        seen.add(outcome.id)
        clock.advance(10)

    outcome = await service.draw("user-a")

    assert isinstance(outcome, PoolExhausted)
    assert len(seen) == 50
    assert await service.records.get_user_draw_count("user-a") == 50


@pytest.mark.asyncio
async def test_available_fortunes_shrink_with_each_draw(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)

    outcome = await service.draw("user-a")
    available = await service.get_available_fortunes("user-a")

    assert len(available) == 49
    assert outcome.id not in {fortune.id for fortune in available}


@pytest.mark.asyncio
async def test_available_fortunes_without_cache_falls_back_to_storage(seeded_storage, cache, clock):
    service = make_service(seeded_storage, cache, clock)
    await service.draw("user-a")
    cache.clear()

    available = await service.get_available_fortunes("user-a")

    assert len(available) == 49
    assert cache.get_all() is not None


@pytest.mark.asyncio
async def test_concurrent_draws_for_one_user_yield_a_single_record(seeded_storage, cache, clock):
    records = GatedDrawRecordStore(seeded_storage)
    service = make_service(seeded_storage, cache, clock, records=records, chooser=pick_id(7))

    outcomes = await asyncio.gather(service.draw("user-a"), service.draw("user-a"))

    successes = [o for o in outcomes if isinstance(o, DrawSuccess)]
    conflicts = [o for o in outcomes if isinstance(o, ConflictRetryable)]
    assert len(successes) == 1
    assert len(conflicts) == 1
    assert successes[0].id == 7
    assert conflicts[0].fortune_id == 7
    assert await records.get_user_draw_count("user-a") == 1


@pytest.mark.asyncio
async def test_missing_fortune_reports_service_failure(seeded_storage, cache, clock, caplog):
    service = DrawService(
        fortunes=MissingFortuneRepository(seeded_storage),
        records=DrawRecordStore(seeded_storage),
        cache=cache,
        clock=clock,
    )

    outcome = await service.draw("user-a")

    assert isinstance(outcome, ServiceFailure)
    assert await service.records.get_user_draw_count("user-a") == 0
    assert "missing from the catalog" in caplog.text


@pytest.mark.asyncio
async def test_unreachable_storage_reports_service_failure(db_path, connector, cache, clock):
    from database import StorageConnection

    connector.fail = True
    storage = StorageConnection(db_path, connector=connector)
    service = make_service(storage, cache, clock)

    outcome = await service.draw("user-a")

    assert isinstance(outcome, ServiceFailure)


@pytest.mark.asyncio
async def test_record_failure_reports_service_failure(seeded_storage, cache, clock):
    class BrokenRecordStore(DrawRecordStore):
        async def record_draw(self, user_token, fortune_id, timestamp=None):
            raise StorageConnectionError("gone")

    service = make_service(seeded_storage, cache, clock, records=BrokenRecordStore(seeded_storage))

    assert isinstance(await service.draw("user-a"), ServiceFailure)


def test_select_weighted_requires_candidates(clock):
    service = DrawService(None, None, None, clock=clock)

    with pytest.raises(ValueError):
        service.select_weighted([])


def test_select_weighted_prefers_category(clock):
    pools = []

    def chooser(candidates):
        pools.append(list(candidates))
        return candidates[0]

    service = DrawService(None, None, None, clock=clock, chooser=chooser)
    candidates = [
        Fortune(id=1, text="a", category="love"),
        Fortune(id=2, text="b", category="career"),
    ]

    service.select_weighted(candidates, prefer_category="love")

    ids = [fortune.id for fortune in pools[0]]
    assert ids.count(1) == 2
    assert ids.count(2) == 1


def test_select_weighted_balances_categories(clock):
    pools = []

    def chooser(candidates):
        pools.append(list(candidates))
        return candidates[0]

    service = DrawService(None, None, None, clock=clock, chooser=chooser)
    candidates = [
        Fortune(id=1, text="a", category="love"),
        Fortune(id=2, text="b", category="love"),
        Fortune(id=3, text="c", category="career"),
    ]

    picked = service.select_weighted(candidates, balance_categories=True)

    categories = {fortune.category for fortune in pools[0]}
    assert len(categories) == 1
    assert picked.category in {"love", "career"}
