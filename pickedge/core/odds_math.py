"""Fundamental odds mathematics: the single source of truth.

Import from this module; never reimplement odds conversion locally in
services or scripts.

The pillars exposed are:

1. **Odds conversion**: American ↔ decimal ↔ implied probability.
2. **Edge**: expected profit per unit stake implied by a model probability
   against a bookmaker price, in percent.
3. **Expected value**: raw EV for a given stake.

Conventions
-----------
* Probabilities coming from the simulator are on a **0–100** scale.
  :func:`implied_probability` returns the same scale so the two can be
  compared directly.
* :func:`edge` is a display-path function: bad input (missing price,
  probability outside [0, 100]) yields a neutral ``0.0`` and a warning log
  instead of an exception, so a single malformed row never breaks a page of
  picks.  The conversion helpers themselves still raise ``ValueError``.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import logging
from typing import Final, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Probability scale used by the simulator output (percent).
PROB_SCALE: Final[float] = 100.0

#: Standard juice price used only for break-even reporting, never as a
#: substitute for a missing market price.
STANDARD_JUICE: Final[int] = -110


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal (European) format.

    Decimal odds represent the total payout per unit staked, **including**
    the return of the stake itself.  Examples::

        american_to_decimal(-110) → 1.9091   (risk 110 to win 100)
        american_to_decimal(+150) → 2.5000   (risk 100 to win 150)

    Args:
        american: American odds.  Negative = favourite, positive = underdog.

    Returns:
        Decimal odds > 1.0.

    Raises:
        ValueError: If ``american`` is zero, which has no payout meaning.
    """
    if american == 0:
        raise ValueError("American odds of 0 are not a valid price.")
    if american < 0:
        # Negative: risk |american| to win 100
        return 100.0 / abs(american) + 1.0
    return american / 100.0 + 1.0


def implied_probability(american: int | float) -> float:
    """Raw implied probability from American odds, in percent (vig-inclusive).

    Examples::

        implied_probability(-110) → 52.38
        implied_probability(+150) → 40.00
    """
    return PROB_SCALE / american_to_decimal(american)


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Inverse of :func:`american_to_decimal`.  Use the result for display and
    logging, not for further arithmetic.

    Raises:
        ValueError: If ``decimal_odds <= 1.0``.
    """
    if decimal_odds <= 1.0:
        raise ValueError(
            f"Decimal odds {decimal_odds!r} must be > 1.0 to carry a payout."
        )
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    return round(-100.0 / (decimal_odds - 1.0))


def is_valid_price(american: Optional[int | float]) -> bool:
    """True when ``american`` is a usable market price (present and non-zero)."""
    return american is not None and american != 0


# ---------------------------------------------------------------------------
# Edge and EV
# ---------------------------------------------------------------------------


def edge(model_prob: Optional[float], american: Optional[int | float]) -> float:
    """Expected-value edge of a bet, in percent of stake.

    ::

        edge = (model_prob / 100 × decimal(odds) − 1) × 100

    At the market's own implied probability the edge is exactly zero
    (break-even identity), and it rises strictly with ``model_prob``.

    Args:
        model_prob: Model probability of the bet winning, 0–100.
        american: Bookmaker price in American odds.

    Returns:
        Edge percentage.  ``0.0`` (with a warning) when the probability is
        missing or outside [0, 100] or the price is missing or zero.

    Examples::

        edge(60.0, -110) → 14.55
        edge(52.38, -110) → 0.00
    """
    if model_prob is None or not (0.0 <= model_prob <= PROB_SCALE):
        logger.warning("edge(): probability %r outside [0, 100]; returning 0", model_prob)
        return 0.0
    if not is_valid_price(american):
        logger.warning("edge(): missing or zero odds %r; returning 0", american)
        return 0.0
    decimal_odds = american_to_decimal(american)
    return (model_prob / PROB_SCALE * decimal_odds - 1.0) * 100.0


def expected_value(win_prob: float, american: int | float, stake: float = 1.0) -> float:
    """Expected profit of a ``stake`` bet with true win probability ``win_prob`` (0–1).

    Pushes are ignored; use this for moneyline-style binary markets.
    """
    payout = stake * (american_to_decimal(american) - 1.0)
    return win_prob * payout - (1.0 - win_prob) * stake
