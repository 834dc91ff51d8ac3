"""Tests for duplicate-pick detection and cleanup."""

from datetime import datetime, timedelta

import pytest

from pickedge.schemas import GameInfo, Pick
from pickedge.services.duplicates import (
    clean_duplicates,
    count_duplicates,
    find_duplicates,
    find_original,
    game_key,
    is_duplicate,
)
from pickedge.services.pick_store import InMemoryPickStore, StoreError

T0 = datetime(2025, 9, 15, 12, 0)


def _pick(pick_id, home="Cleveland Browns", away="Pittsburgh Steelers", week=3,
          minutes=0, game_date=None) -> Pick:
    return Pick(
        id=pick_id,
        created_at=T0 + timedelta(minutes=minutes),
        week=week,
        game_info=GameInfo(home_team=home, away_team=away, game_date=game_date),
        prediction=f"{home} win",
    )


@pytest.fixture
def picks():
    return [
        _pick("dup-late", home="Browns", minutes=20),
        _pick("orig", minutes=0),
        _pick("dup-date", week=None, game_date=datetime(2025, 9, 21, 13, 0), minutes=10),
        _pick("other", home="Kansas City Chiefs", away="Buffalo Bills", minutes=5),
    ]


class TestGameKey:
    def test_canonical_slugs_and_week(self):
        assert game_key(_pick("a")) == "clebrowns-pitsteelers-3"

    def test_alias_folds_to_same_key(self):
        assert game_key(_pick("a", home="Browns", away="Steelers")) == "clebrowns-pitsteelers-3"

    def test_week_derived_from_date(self):
        pick = _pick("a", week=None, game_date=datetime(2025, 9, 21, 13, 0))
        assert game_key(pick) == "clebrowns-pitsteelers-3"

    def test_home_and_away_are_ordered(self):
        flipped = _pick("a", home="Pittsburgh Steelers", away="Cleveland Browns")
        assert game_key(flipped) != game_key(_pick("b"))

    def test_kickoff_time_not_part_of_key(self):
        a = _pick("a", game_date=datetime(2025, 9, 21, 13, 0))
        b = _pick("b", game_date=datetime(2025, 9, 22, 20, 15))
        assert game_key(a) == game_key(b)


def test_find_duplicates(picks):
    groups = find_duplicates(picks)
    assert len(groups) == 1
    group = groups[0]
    assert group.key == "clebrowns-pitsteelers-3"
    assert group.original.id == "orig"
    assert [p.id for p in group.duplicates] == ["dup-date", "dup-late"]


def test_equal_timestamps_keep_input_order():
    a = _pick("first")
    b = _pick("second")
    group = find_duplicates([a, b])[0]
    assert group.original.id == "first"


def test_count_duplicates(picks):
    assert count_duplicates(picks) == 2
    assert count_duplicates([]) == 0


def test_is_duplicate(picks):
    by_id = {p.id: p for p in picks}
    assert is_duplicate(by_id["orig"], picks)
    assert is_duplicate(by_id["dup-late"], picks)
    assert not is_duplicate(by_id["other"], picks)


def test_is_duplicate_ignores_itself():
    only = _pick("solo")
    assert not is_duplicate(only, [only])


def test_find_original(picks):
    by_id = {p.id: p for p in picks}
    assert find_original(by_id["dup-late"], picks).id == "orig"
    assert find_original(by_id["orig"], picks) is None
    assert find_original(by_id["other"], picks) is None


# ---------------------------------------------------------------------------
# Cleanup
# ---------------------------------------------------------------------------

class _FailingStore(InMemoryPickStore):
    def __init__(self, picks, fail_ids):
        super().__init__(picks)
        self.fail_ids = set(fail_ids)

    async def delete(self, pick_id):
        if pick_id in self.fail_ids:
            raise StoreError("database locked", pick_id)
        await super().delete(pick_id)


@pytest.mark.asyncio
async def test_clean_duplicates_keeps_originals(picks):
    store = InMemoryPickStore(picks)
    report = await clean_duplicates(picks, store)

    assert report.deleted_count == 2
    assert report.failed_count == 0
    assert report.errors == []
    remaining = {p.id for p in await store.get_all()}
    assert remaining == {"orig", "other"}


@pytest.mark.asyncio
async def test_clean_duplicates_continues_after_failure(picks):
    store = _FailingStore(picks, fail_ids=["dup-date"])
    report = await clean_duplicates(picks, store)

    assert report.deleted_count == 1
    assert report.failed_count == 1
    assert report.errors == [{"pick_id": "dup-date", "error": "database locked"}]
    assert await store.get("dup-late") is None
    assert await store.get("dup-date") is not None


@pytest.mark.asyncio
async def test_clean_duplicates_nothing_to_do():
    store = InMemoryPickStore([_pick("a")])
    report = await clean_duplicates([_pick("a")], store)
    assert report.deleted_count == report.failed_count == 0
