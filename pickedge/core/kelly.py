"""Kelly criterion sizing: the single source of truth for stake math.

Import from this module; never reimplement Kelly locally in services.

:func:`kelly` is the stake suggestion shown next to every published edge.
:func:`kelly_to_units` converts it to the pipeline's unit convention
(1 unit = 1% of bankroll).

Fractional Kelly
----------------
Full Kelly maximises long-run log-wealth only when the edge is known
exactly.  Simulator probabilities are noisy, so every suggestion is scaled
by a fraction (default 1/4).  The fraction is configurable through
:class:`~pickedge.core.engine_config.EngineConfig`.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import logging
from typing import Final, Optional

from pickedge.core.odds_math import american_to_decimal, is_valid_price

logger = logging.getLogger(__name__)

#: Default fractional Kelly multiplier (quarter Kelly).
DEFAULT_KELLY_FRACTION: Final[float] = 0.25


def kelly(
    win_prob: Optional[float],
    american: Optional[int | float],
    fraction: float = DEFAULT_KELLY_FRACTION,
) -> float:
    """Fractional Kelly bankroll share for a win/loss bet.

    The closed-form Kelly solution, with ``d`` the decimal odds::

        f*  =  (p · d − 1) / (d − 1)

    and the suggestion is ``max(0, f* × fraction)``.

    Args:
        win_prob: True probability of winning, in ``[0, 1]``.
        american: Price in American odds.
        fraction: Fractional Kelly multiplier.  Default 0.25.

    Returns:
        Fraction of bankroll to stake, ≥ 0.  Negative-EV bets return 0.
        Invalid input (probability outside [0, 1], missing or zero odds)
        returns 0 with a warning.

    Examples::

        kelly(0.60, -110)  →  0.0400
        kelly(0.45, -110)  →  0.0      (negative EV → never bet)
        kelly(0.50, +150)  →  0.0417
    """
    if win_prob is None or not (0.0 <= win_prob <= 1.0):
        logger.warning("kelly(): probability %r outside [0, 1]; returning 0", win_prob)
        return 0.0
    if not is_valid_price(american):
        logger.warning("kelly(): missing or zero odds %r; returning 0", american)
        return 0.0

    decimal_odds = american_to_decimal(american)
    profit_per_unit = decimal_odds - 1.0
    full_kelly = (win_prob * decimal_odds - 1.0) / profit_per_unit
    return max(0.0, full_kelly * fraction)


def kelly_to_units(kelly_fraction_val: float) -> float:
    """Convert a Kelly fraction to units (1 unit = 1% of bankroll).

    Examples::

        kelly_to_units(0.025) → 2.5
        kelly_to_units(0.005) → 0.5
    """
    return kelly_fraction_val * 100.0
