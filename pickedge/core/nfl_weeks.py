"""NFL 2025 season week windows.

A pick's week is part of its game identity (see
:mod:`pickedge.services.duplicates`).  Picks normally carry the week they
were generated for; older rows only have a kickoff date, so the week is
derived from the official schedule windows below (Thursday through Monday,
inclusive of the Monday night game).
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, Final, Optional, Tuple

logger = logging.getLogger(__name__)

SEASON_START: Final[date] = date(2025, 9, 4)
SEASON_END: Final[date] = date(2026, 1, 5)
MAX_WEEK: Final[int] = 18
DEFAULT_WEEK: Final[int] = 1

NFL_2025_SCHEDULE: Dict[int, Tuple[date, date]] = {
    1: (date(2025, 9, 4), date(2025, 9, 8)),
    2: (date(2025, 9, 11), date(2025, 9, 15)),
    3: (date(2025, 9, 18), date(2025, 9, 22)),
    4: (date(2025, 9, 25), date(2025, 9, 29)),
    5: (date(2025, 10, 2), date(2025, 10, 6)),
    6: (date(2025, 10, 9), date(2025, 10, 13)),
    7: (date(2025, 10, 16), date(2025, 10, 20)),
    8: (date(2025, 10, 23), date(2025, 10, 27)),
    9: (date(2025, 10, 30), date(2025, 11, 3)),
    10: (date(2025, 11, 6), date(2025, 11, 10)),
    11: (date(2025, 11, 13), date(2025, 11, 17)),
    12: (date(2025, 11, 20), date(2025, 11, 24)),
    13: (date(2025, 11, 27), date(2025, 12, 1)),
    14: (date(2025, 12, 4), date(2025, 12, 8)),
    15: (date(2025, 12, 11), date(2025, 12, 15)),
    16: (date(2025, 12, 18), date(2025, 12, 22)),
    17: (date(2025, 12, 25), date(2025, 12, 29)),
    18: (date(2026, 1, 3), date(2026, 1, 5)),
}


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def week_from_date(game_date: Optional[date | datetime]) -> Optional[int]:
    """Return the schedule week containing ``game_date``, or None."""
    if game_date is None:
        return None
    d = _as_date(game_date)
    for week, (start, end) in NFL_2025_SCHEDULE.items():
        if start <= d <= end:
            return week
    return None


def is_in_season(game_date: date | datetime) -> bool:
    d = _as_date(game_date)
    return SEASON_START <= d <= SEASON_END


def resolve_week(
    stored_week: Optional[int],
    game_date: Optional[date | datetime],
    label: str = "",
) -> int:
    """Best-effort week for a pick.

    Priority: stored week > schedule window > day-count from season start
    (in-season dates between windows, e.g. a Tuesday makeup game) > week 1.
    """
    if stored_week:
        return stored_week

    week = week_from_date(game_date)
    if week is not None:
        return week

    if game_date is None:
        logger.warning("No week or game date for %s; defaulting to week %d", label, DEFAULT_WEEK)
        return DEFAULT_WEEK

    if not is_in_season(game_date):
        logger.warning(
            "Game date %s for %s is outside the 2025 season; defaulting to week %d",
            game_date, label, DEFAULT_WEEK,
        )
        return DEFAULT_WEEK

    days = (_as_date(game_date) - SEASON_START).days
    return max(1, min(MAX_WEEK, days // 7 + 1))
