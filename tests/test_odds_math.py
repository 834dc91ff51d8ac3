"""Tests for odds conversion, edge and Kelly sizing."""

import pytest

from pickedge.core.kelly import kelly, kelly_to_units
from pickedge.core.odds_math import (
    american_to_decimal,
    decimal_to_american,
    edge,
    expected_value,
    implied_probability,
    is_valid_price,
)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("american, expected", [
    (-110, 1.9091),
    (-200, 1.5),
    (100, 2.0),
    (150, 2.5),
    (-100, 2.0),
])
def test_american_to_decimal(american, expected):
    assert american_to_decimal(american) == pytest.approx(expected, abs=1e-4)


def test_american_to_decimal_rejects_zero():
    with pytest.raises(ValueError):
        american_to_decimal(0)


def test_implied_probability_standard_juice():
    assert implied_probability(-110) == pytest.approx(52.38, abs=0.01)


def test_implied_probability_even_money():
    assert implied_probability(100) == pytest.approx(50.0)


@pytest.mark.parametrize("decimal_odds, expected", [
    (2.5, 150),
    (2.0, 100),
    (1.9091, -110),
    (1.5, -200),
])
def test_decimal_to_american(decimal_odds, expected):
    assert decimal_to_american(decimal_odds) == expected


def test_decimal_to_american_rejects_no_payout():
    with pytest.raises(ValueError):
        decimal_to_american(1.0)


@pytest.mark.parametrize("price, ok", [(None, False), (0, False), (-110, True), (250, True)])
def test_is_valid_price(price, ok):
    assert is_valid_price(price) is ok


# ---------------------------------------------------------------------------
# Edge
# ---------------------------------------------------------------------------

def test_edge_worked_example():
    assert edge(60.0, -110) == pytest.approx(14.55, abs=0.01)


@pytest.mark.parametrize("american", [-110, -250, 100, 180])
def test_edge_is_zero_at_break_even(american):
    assert edge(implied_probability(american), american) == pytest.approx(0.0, abs=1e-9)


def test_edge_increases_with_probability():
    edges = [edge(p, -110) for p in (40.0, 50.0, 60.0, 70.0)]
    assert edges == sorted(edges)
    assert len(set(edges)) == 4


@pytest.mark.parametrize("prob, american", [
    (None, -110),
    (-1.0, -110),
    (100.5, -110),
    (55.0, None),
    (55.0, 0),
])
def test_edge_invalid_input_is_zero(prob, american, caplog):
    assert edge(prob, american) == 0.0
    assert "returning 0" in caplog.text


def test_expected_value_even_money_coin_flip():
    assert expected_value(0.5, 100) == pytest.approx(0.0)


def test_expected_value_positive():
    # 60% at +100 on a 10 stake: 0.6*10 - 0.4*10
    assert expected_value(0.6, 100, stake=10.0) == pytest.approx(2.0)


# ---------------------------------------------------------------------------
# Kelly
# ---------------------------------------------------------------------------

def test_kelly_quarter_default():
    assert kelly(0.60, -110) == pytest.approx(0.04, abs=1e-4)


def test_kelly_plus_money():
    assert kelly(0.50, 150) == pytest.approx(0.0417, abs=1e-4)


def test_kelly_negative_ev_is_zero():
    assert kelly(0.45, -110) == 0.0


def test_kelly_full_fraction():
    assert kelly(0.60, -110, fraction=1.0) == pytest.approx(0.16, abs=1e-4)


@pytest.mark.parametrize("prob, american", [(1.5, -110), (None, -110), (0.6, 0)])
def test_kelly_invalid_input(prob, american):
    assert kelly(prob, american) == 0.0


def test_kelly_to_units():
    assert kelly_to_units(0.025) == pytest.approx(2.5)
