"""Tests for the SQLAlchemy and in-memory pick stores."""

from datetime import datetime

import pytest

from pickedge.models import Base, engine
from pickedge.schemas import GameInfo, MonteCarloResults, Pick
from pickedge.services.pick_store import InMemoryPickStore, SQLPickStore, StoreError


def _pick(pick_id, minutes=0) -> Pick:
    return Pick(
        id=pick_id,
        created_at=datetime(2025, 9, 15, 12, minutes),
        week=3,
        game_info=GameInfo(
            home_team="Kansas City Chiefs",
            away_team="Buffalo Bills",
            game_date=datetime(2025, 9, 21, 16, 25),
            spread=-3.5,
            home_ml_odds=-170,
            away_ml_odds=145,
        ),
        prediction="Chiefs win",
        monte_carlo_results=MonteCarloResults(home_win_probability=61.0),
    )


@pytest.fixture
def sql_store():
    Base.metadata.create_all(bind=engine)
    yield SQLPickStore()
    Base.metadata.drop_all(bind=engine)


class TestSQLPickStore:
    @pytest.mark.asyncio
    async def test_create_and_get(self, sql_store):
        await sql_store.create(_pick("a"))
        loaded = await sql_store.get("a")
        assert loaded.game_info.home_ml_odds == -170
        assert loaded.game_info.game_date == datetime(2025, 9, 21, 16, 25)
        assert loaded.monte_carlo_results.home_win_probability == 61.0
        assert loaded.ats_result == "pending"

    @pytest.mark.asyncio
    async def test_get_missing(self, sql_store):
        assert await sql_store.get("nope") is None

    @pytest.mark.asyncio
    async def test_get_all_oldest_first(self, sql_store):
        await sql_store.create(_pick("late", minutes=30))
        await sql_store.create(_pick("early", minutes=1))
        assert [p.id for p in await sql_store.get_all()] == ["early", "late"]

    @pytest.mark.asyncio
    async def test_update_fields(self, sql_store):
        await sql_store.create(_pick("a"))
        game = (await sql_store.get("a")).game_info.model_copy(update={"home_score": 24, "away_score": 20})
        updated = await sql_store.update("a", {"result": "win", "game_info": game, "spread_edge": 1.5})
        assert updated.result == "win"
        assert updated.spread_edge == 1.5
        assert (await sql_store.get("a")).game_info.home_score == 24

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, sql_store):
        with pytest.raises(StoreError) as exc_info:
            await sql_store.update("nope", {"result": "win"})
        assert exc_info.value.pick_id == "nope"

    @pytest.mark.asyncio
    async def test_invalid_update_leaves_row_untouched(self, sql_store):
        await sql_store.create(_pick("a"))
        with pytest.raises(StoreError) as exc_info:
            await sql_store.update("a", {"confidence": 150})
        assert exc_info.value.pick_id == "a"
        assert (await sql_store.get("a")).confidence == 50.0
        # the table still loads
        assert [p.id for p in await sql_store.get_all()] == ["a"]

    @pytest.mark.asyncio
    async def test_delete(self, sql_store):
        await sql_store.create(_pick("a"))
        await sql_store.delete("a")
        assert await sql_store.get("a") is None
        with pytest.raises(StoreError):
            await sql_store.delete("a")

    @pytest.mark.asyncio
    async def test_duplicate_id_raises(self, sql_store):
        await sql_store.create(_pick("a"))
        with pytest.raises(StoreError):
            await sql_store.create(_pick("a"))


class TestInMemoryPickStore:
    @pytest.mark.asyncio
    async def test_round_trip(self):
        store = InMemoryPickStore()
        await store.create(_pick("a"))
        assert (await store.get("a")).id == "a"

    @pytest.mark.asyncio
    async def test_invalid_update_raises_store_error(self):
        store = InMemoryPickStore([_pick("a")])
        with pytest.raises(StoreError):
            await store.update("a", {"result": "won"})
        assert (await store.get("a")).result == "pending"

    @pytest.mark.asyncio
    async def test_missing_rows(self):
        store = InMemoryPickStore()
        with pytest.raises(StoreError):
            await store.update("x", {"result": "win"})
        with pytest.raises(StoreError):
            await store.delete("x")
