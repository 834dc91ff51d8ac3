"""
Performance records over graded picks.

All public functions take a list of ``Pick`` and return plain dicts so they
can be served from FastAPI endpoints or printed by scripts without any
web-layer code.

Markets are re-graded from the stored scores with
:func:`pickedge.services.outcomes.calculate_all_results`, so a record never
disagrees with what the resolver would say today.  Units assume -110 on
every market: +0.91 per win, -1 per loss, 0 per push.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from pickedge.core.nfl_weeks import resolve_week
from pickedge.schemas import Pick
from pickedge.services.outcomes import calculate_all_results

logger = logging.getLogger(__name__)

#: Win rate needed to break even at -110 (110 / 210).
BREAK_EVEN_RATE = 52.38

WIN_UNITS = 0.91
LOSS_UNITS = -1.0

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 60
#: Confidence at or above which a pick counts toward ``confidence_accuracy``.
EFFICIENCY_CONFIDENCE = 75
#: Cap on the efficiency Kelly percentage.
MAX_KELLY_PERCENT = 25.0


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _win_rate_pct(wins: int, total: int) -> float:
    return round(wins / total * 100.0, 2) if total > 0 else 0.0


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def _confidence_bucket(confidence: float) -> str:
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def _is_graded(pick: Pick) -> bool:
    return pick.result != "pending" and pick.game_info.has_scores


def _units(result: str) -> float:
    if result == "win":
        return WIN_UNITS
    if result == "loss":
        return LOSS_UNITS
    return 0.0


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def calculate_record(picks: List[Pick]) -> Dict:
    """
    Moneyline, ATS and O/U record for ``picks``.

    Only picks with a non-pending moneyline result and both scores count.
    Win rates exclude pushes.
    """
    ml = {"wins": 0, "losses": 0, "pushes": 0}
    ats = {"wins": 0, "losses": 0, "pushes": 0}
    ou = {"wins": 0, "losses": 0, "pushes": 0}
    cover_margins: List[float] = []
    totals: List[float] = []
    units = 0.0
    buckets = {name: {"picks": 0, "wins": 0} for name in ("high", "medium", "low")}

    for pick in picks:
        if not _is_graded(pick):
            continue
        results = calculate_all_results(pick)
        bucket = buckets[_confidence_bucket(pick.confidence)]
        bucket["picks"] += 1

        for tally, market in ((ml, results.moneyline), (ats, results.ats), (ou, results.over_under)):
            if market.result == "win":
                tally["wins"] += 1
            elif market.result == "loss":
                tally["losses"] += 1
            elif market.result == "push":
                tally["pushes"] += 1
            units += _units(market.result)

        if results.moneyline.result == "win":
            bucket["wins"] += 1
        if results.ats.result in ("win", "loss") and results.ats.margin is not None:
            cover_margins.append(results.ats.margin)
        if results.over_under.total_points is not None and pick.game_info.over_under:
            totals.append(results.over_under.total_points)

    def _market(tally: Dict) -> Dict:
        resolved = tally["wins"] + tally["losses"]
        return {**tally, "total_resolved": resolved, "win_rate": _win_rate_pct(tally["wins"], resolved)}

    avg_margin = _mean(cover_margins)
    avg_total = _mean(totals)
    return {
        "total_picks": len(picks),
        "moneyline": _market(ml),
        "ats": {**_market(ats), "average_cover_margin": round(avg_margin, 2) if avg_margin is not None else 0.0},
        "over_under": {**_market(ou), "average_total": round(avg_total, 2) if avg_total is not None else 0.0},
        "units": round(units, 2),
        "by_confidence": {
            name: {"picks": b["picks"], "win_rate": _win_rate_pct(b["wins"], b["picks"])}
            for name, b in buckets.items()
        },
    }


def calculate_weekly_records(picks: List[Pick]) -> List[Dict]:
    """One record per week, ascending."""
    by_week: Dict[int, List[Pick]] = defaultdict(list)
    for pick in picks:
        week = resolve_week(pick.week, pick.game_info.game_date, label=f"pick {pick.id}")
        by_week[week].append(pick)
    return [
        {"week": week, "record": calculate_record(by_week[week])}
        for week in sorted(by_week)
    ]


def calculate_team_records(picks: List[Pick]) -> Dict[str, Dict]:
    """Record per team; a pick counts for both teams in its game."""
    by_team: Dict[str, List[Pick]] = defaultdict(list)
    for pick in picks:
        by_team[pick.game_info.home_team].append(pick)
        by_team[pick.game_info.away_team].append(pick)
    return {team: calculate_record(team_picks) for team, team_picks in by_team.items()}


def recent_form(picks: List[Pick], count: int = 5) -> Dict:
    """Record over the ``count`` most recently created picks."""
    recent = sorted(picks, key=lambda p: p.created_at, reverse=True)[:count]
    return calculate_record(recent)


def betting_efficiency(picks: List[Pick]) -> Dict:
    """
    How far the moneyline win rate sits above break-even at -110.

    ``kelly_percent`` is a rough sizing hint: twice the advantage as a
    fraction, clamped to [0, 25].
    """
    record = calculate_record(picks)
    advantage = record["moneyline"]["win_rate"] - BREAK_EVEN_RATE

    hc_picks = [
        p for p in picks
        if p.confidence >= EFFICIENCY_CONFIDENCE and p.result != "pending"
    ]
    hc_wins = sum(1 for p in hc_picks if p.result == "win")

    return {
        "break_even_rate": BREAK_EVEN_RATE,
        "actual_advantage": round(advantage, 2),
        "kelly_percent": max(0.0, min(MAX_KELLY_PERCENT, advantage / 100.0 * 2)),
        "confidence_accuracy": _win_rate_pct(hc_wins, len(hc_picks)),
        "value_games": hc_wins,
    }


def performance_summary(picks: List[Pick]) -> Dict:
    """Everything the summary endpoint returns."""
    if not picks:
        return {"message": "No picks yet", "total_picks": 0}
    return {
        "overall": calculate_record(picks),
        "recent_form": recent_form(picks),
        "efficiency": betting_efficiency(picks),
        "weekly": calculate_weekly_records(picks),
    }
