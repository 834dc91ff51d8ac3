"""Tests for moneyline / ATS / total grading."""

from dataclasses import replace

import pytest

from pickedge.core.engine_config import EngineConfig
from pickedge.schemas import GameInfo, Pick
from pickedge.services.outcomes import (
    apply_scores,
    calculate_all_results,
    resolve_ats,
    resolve_moneyline,
    resolve_total,
    result_fields,
)


def _pick(home_score=None, away_score=None, prediction="Chiefs win", spread_prediction=None,
          ou_prediction=None, spread=None, over_under=None, **game_overrides) -> Pick:
    game = {
        "home_team": "Kansas City Chiefs",
        "away_team": "Buffalo Bills",
        "home_score": home_score,
        "away_score": away_score,
        "spread": spread,
        "over_under": over_under,
    }
    game.update(game_overrides)
    return Pick(
        id="p-1",
        week=3,
        game_info=GameInfo(**game),
        prediction=prediction,
        spread_prediction=spread_prediction,
        ou_prediction=ou_prediction,
    )


# ---------------------------------------------------------------------------
# No scores
# ---------------------------------------------------------------------------

def test_everything_pending_without_scores():
    pick = _pick(spread=-3.5, over_under=47.5, spread_prediction="Chiefs -3.5", ou_prediction="Over")
    results = calculate_all_results(pick)
    assert results.has_scores is False
    assert (results.moneyline.result, results.ats.result, results.over_under.result) == (
        "pending", "pending", "pending"
    )


def test_one_score_is_not_enough():
    results = calculate_all_results(_pick(home_score=24))
    assert results.has_scores is False
    assert results.moneyline.result == "pending"


# ---------------------------------------------------------------------------
# Moneyline
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("prediction, home, away, expected", [
    ("Chiefs win", 27, 20, "win"),
    ("Chiefs win", 17, 20, "loss"),
    ("Bills in an upset", 17, 20, "win"),
    ("Chiefs win", 20, 20, "push"),
    ("Nobody knows", 20, 20, "push"),
    ("Nobody knows", 27, 20, "pending"),
])
def test_moneyline(prediction, home, away, expected):
    assert resolve_moneyline(_pick(home, away, prediction=prediction)).result == expected


def test_moneyline_records_side():
    assert resolve_moneyline(_pick(27, 20)).side == "home"


# ---------------------------------------------------------------------------
# ATS
# ---------------------------------------------------------------------------

class TestATS:
    def test_home_favourite_covers_by_half_point(self):
        # (24 − 20) + (−3.5) = 0.5 → not a push at threshold 0.5
        res = resolve_ats(_pick(24, 20, spread=-3.5, spread_prediction="Chiefs -3.5"))
        assert res.result == "win"
        assert res.margin == pytest.approx(0.5)
        assert res.line == -3.5

    def test_away_side_loses_same_game(self):
        res = resolve_ats(_pick(24, 20, spread=-3.5, spread_prediction="Bills +3.5"))
        assert res.result == "loss"

    def test_whole_number_push(self):
        res = resolve_ats(_pick(23, 20, spread=-3.0, spread_prediction="Chiefs -3"))
        assert res.result == "push"

    def test_home_underdog_fails_to_cover(self):
        # (20 − 24) + 3 = −1 → away covers
        res = resolve_ats(_pick(20, 24, spread=3.0, spread_prediction="Chiefs +3"))
        assert res.result == "loss"
        assert res.margin == pytest.approx(-1.0)

    def test_literal_only_prediction(self):
        res = resolve_ats(_pick(30, 20, spread=-6.5, favorite_is_home=True, spread_prediction="-6.5"))
        assert res.result == "win"
        assert res.side == "home"

    def test_needs_spread_line(self):
        assert resolve_ats(_pick(24, 20, spread_prediction="Chiefs -3.5")).result == "pending"

    def test_needs_spread_prediction(self):
        # Moneyline text is not used for ATS
        assert resolve_ats(_pick(24, 20, spread=-3.5, prediction="Chiefs win")).result == "pending"

    def test_unresolvable_side_stays_pending(self):
        assert resolve_ats(_pick(24, 20, spread=-3.5, spread_prediction="they cover")).result == "pending"

    def test_custom_push_threshold(self):
        res = resolve_ats(_pick(24, 20, spread=-3.5, spread_prediction="Chiefs -3.5"), push_threshold=1.0)
        assert res.result == "push"


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

class TestTotals:
    @pytest.mark.parametrize("ou_prediction, home, away, line, expected", [
        ("Over 44.5", 24, 21, 44.5, "win"),
        ("Under 44.5", 24, 21, 44.5, "loss"),
        ("Under 47.5", 24, 21, 47.5, "win"),
        ("Over 45", 24, 21, 45.0, "push"),
    ])
    def test_graded(self, ou_prediction, home, away, line, expected):
        res = resolve_total(_pick(home, away, over_under=line, ou_prediction=ou_prediction))
        assert res.result == expected
        assert res.total_points == home + away

    def test_falls_back_to_moneyline_text(self):
        res = resolve_total(_pick(31, 28, over_under=47.5, prediction="Chiefs win a shootout"))
        assert res.result == "win"
        assert res.side == "over"

    def test_directionless_totals_text_falls_back(self):
        res = resolve_total(_pick(31, 28, over_under=47.5, ou_prediction="Take the total",
                                  prediction="Chiefs win a shootout"))
        assert res.result == "win"
        assert res.side == "over"

    def test_needs_a_line(self):
        assert resolve_total(_pick(24, 21, ou_prediction="Over")).result == "pending"

    def test_no_direction_stays_pending(self):
        res = resolve_total(_pick(24, 21, over_under=44.5))
        assert res.result == "pending"
        assert res.total_points == 45


# ---------------------------------------------------------------------------
# Whole pick
# ---------------------------------------------------------------------------

def test_markets_resolve_independently():
    pick = _pick(27, 20, prediction="Chiefs win", spread=-3.5, spread_prediction="they cover",
                 over_under=50.5, ou_prediction="Under")
    results = calculate_all_results(pick)
    assert results.has_scores
    assert results.moneyline.result == "win"
    assert results.ats.result == "pending"
    assert results.over_under.result == "win"
    assert result_fields(results) == {"result": "win", "ats_result": "pending", "ou_result": "win"}


def test_config_push_threshold_is_used():
    cfg = replace(EngineConfig(), push_threshold=1.0)
    pick = _pick(24, 20, spread=-3.5, spread_prediction="Chiefs -3.5")
    assert calculate_all_results(pick, cfg).ats.result == "push"


class TestApplyScores:
    def test_returns_graded_copy(self):
        pick = _pick(spread=-3.5, spread_prediction="Chiefs -3.5", over_under=47.5, ou_prediction="Over")
        graded = apply_scores(pick, 31, 24)

        assert graded.game_info.home_score == 31
        assert graded.game_info.away_score == 24
        assert (graded.result, graded.ats_result, graded.ou_result) == ("win", "win", "win")

        assert pick.game_info.home_score is None
        assert pick.result == "pending"

    def test_rejects_negative_scores(self):
        with pytest.raises(ValueError):
            apply_scores(_pick(), -1, 10)
