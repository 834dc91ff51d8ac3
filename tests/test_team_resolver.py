"""Tests for team-name canonicalisation and prediction side resolution."""

import pytest

from pickedge.schemas import GameInfo
from pickedge.services.team_resolver import (
    Side,
    SpreadPick,
    TotalSide,
    canonical_team_name,
    favorite_side,
    parse_spread_literal,
    resolve_favorite_pick,
    resolve_side,
    resolve_spread_side,
    resolve_pick_total_side,
    resolve_total_side,
    spread_pick_for_side,
    team_slug,
)

KC = "Kansas City Chiefs"
BUF = "Buffalo Bills"


def _game(**overrides) -> GameInfo:
    fields = {"home_team": KC, "away_team": BUF}
    fields.update(overrides)
    return GameInfo(**fields)


# ---------------------------------------------------------------------------
# Canonical names
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("name, expected", [
    ("Browns", "Cleveland Browns"),
    ("KC", KC),
    ("  kansas   city CHIEFS ", KC),
    ("Niners", "San Francisco 49ers"),
    ("NY Jets", "New York Jets"),
    ("Oakland Raiders", "Las Vegas Raiders"),
    ("Clevland Browns", "Cleveland Browns"),   # typo → fuzzy fallback
])
def test_canonical_team_name(name, expected):
    assert canonical_team_name(name) == expected


@pytest.mark.parametrize("name", ["New York", "Los Angeles", "", None, "Springfield Atoms"])
def test_canonical_team_name_unresolved(name):
    assert canonical_team_name(name) is None


def test_team_slug_folds_aliases():
    assert team_slug("Browns") == team_slug("Cleveland Browns") == "clebrowns"
    assert team_slug("  CLEVELAND browns ") == "clebrowns"


def test_team_slug_unknown_name_is_normalized_text():
    assert team_slug("  Springfield   Atoms ") == "springfield atoms"


# ---------------------------------------------------------------------------
# resolve_side
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text, home, away, expected", [
    ("Chiefs win outright", KC, BUF, Side.HOME),
    ("Buffalo Bills pull the upset", KC, BUF, Side.AWAY),
    ("Chiefs and Bills trade blows", KC, BUF, Side.UNKNOWN),
    ("Kansas City rolls", "Chiefs", "Bills", Side.HOME),
    ("Giants win", "New York Giants", "New York Jets", Side.HOME),
    ("New York wins", "New York Giants", "New York Jets", Side.UNKNOWN),
    ("New England covers", "New Orleans Saints", "New England Patriots", Side.AWAY),
    ("Green Bay at home", "Green Bay Packers", "Chicago Bears", Side.HOME),
    ("SEA by a touchdown", "Seattle Seahawks", "Arizona Cardinals", Side.UNKNOWN),
    ("Close game either way", KC, BUF, Side.UNKNOWN),
    ("", KC, BUF, Side.UNKNOWN),
    (None, KC, BUF, Side.UNKNOWN),
])
def test_resolve_side(text, home, away, expected):
    assert resolve_side(text, home, away) is expected


# ---------------------------------------------------------------------------
# Spread
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text, expected", [
    ("Browns +3.5", 3.5),
    ("KC -7 (-110)", -7.0),
    ("Take Bills +3.", 3.0),
    ("-110 juice", None),
    ("kickoff 2025-09-04", None),
    ("no numbers", None),
])
def test_parse_spread_literal(text, expected):
    assert parse_spread_literal(text) == expected


@pytest.mark.parametrize("text, expected", [
    ("Chiefs -3.5", SpreadPick.FAVORITE),
    ("Bills +3.5 is the play", SpreadPick.UNDERDOG),
    ("Lay the points at -3", SpreadPick.FAVORITE),
    ("Take the +6.5", SpreadPick.UNDERDOG),
    ("Chiefs -3 over the Bills", SpreadPick.FAVORITE),
    ("Home side covers", SpreadPick.UNKNOWN),
    ("Price is -110", SpreadPick.UNKNOWN),
])
def test_resolve_favorite_pick(text, expected):
    assert resolve_favorite_pick(text, KC, BUF) is expected


class TestFavoriteSide:
    def test_explicit_flag_wins(self):
        assert favorite_side(_game(favorite_is_home=False, spread=-3)) is Side.AWAY

    def test_favorite_team_alias(self):
        assert favorite_side(_game(favorite_team="Chiefs")) is Side.HOME

    @pytest.mark.parametrize("spread, expected", [(-3.0, Side.HOME), (2.5, Side.AWAY)])
    def test_spread_sign(self, spread, expected):
        assert favorite_side(_game(spread=spread)) is expected

    @pytest.mark.parametrize("home_ml, away_ml, expected", [
        (-150, 130, Side.HOME),
        (120, -140, Side.AWAY),
    ])
    def test_moneyline(self, home_ml, away_ml, expected):
        assert favorite_side(_game(home_ml_odds=home_ml, away_ml_odds=away_ml)) is expected

    def test_pickem_without_prices_is_unknown(self):
        assert favorite_side(_game(spread=0)) is Side.UNKNOWN


@pytest.mark.parametrize("text, expected", [
    ("-3.5", Side.HOME),
    ("+3.5 all day", Side.AWAY),
    ("Bills +3.5", Side.AWAY),
    ("they cover", Side.UNKNOWN),
])
def test_resolve_spread_side(text, expected):
    assert resolve_spread_side(text, _game(spread=-3.5, favorite_is_home=True)) is expected


def test_resolve_spread_side_needs_a_favourite_for_literals():
    assert resolve_spread_side("+3.5", _game()) is Side.UNKNOWN


def test_spread_pick_for_side():
    game = _game(spread=-3.5)
    assert spread_pick_for_side(Side.HOME, game) is SpreadPick.FAVORITE
    assert spread_pick_for_side(Side.AWAY, game) is SpreadPick.UNDERDOG
    assert spread_pick_for_side(Side.UNKNOWN, game) is SpreadPick.UNKNOWN


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text, expected", [
    ("Over 47.5", TotalSide.OVER),
    ("under the total", TotalSide.UNDER),
    ("o 44.5", TotalSide.OVER),
    ("U41", TotalSide.UNDER),
    ("A shootout in the dome", TotalSide.OVER),
    ("High scoring affair", TotalSide.OVER),
    ("Low-scoring, defensive game", TotalSide.UNDER),
    ("Ugly weather game", TotalSide.UNDER),
    ("Over/under 44 feels right", TotalSide.UNKNOWN),
    ("Shootout or defensive slog", TotalSide.UNKNOWN),
    ("Bills cover easily", TotalSide.UNKNOWN),
    ("", TotalSide.UNKNOWN),
    (None, TotalSide.UNKNOWN),
])
def test_resolve_total_side(text, expected):
    assert resolve_total_side(text) is expected


def test_explicit_token_beats_descriptive_phrase():
    # "defensive" would read as under; the explicit "over" decides
    assert resolve_total_side("Over, despite two defensive teams") is TotalSide.OVER


@pytest.mark.parametrize("ou_prediction, prediction, expected", [
    ("Under 47.5", "Chiefs win a shootout", TotalSide.UNDER),
    ("Take the total", "Chiefs win a shootout", TotalSide.OVER),
    (None, "Ugly win for the Bills", TotalSide.UNDER),
    ("Take the total", "Chiefs win", TotalSide.UNKNOWN),
])
def test_resolve_pick_total_side(ou_prediction, prediction, expected):
    assert resolve_pick_total_side(ou_prediction, prediction) is expected
