"""
Outcome resolution: grade a pick's three markets once final scores exist.

Each market is a tiny state machine::

    pending ──(both scores present, side resolved)──▶ win | loss | push

Nothing here touches the database.  :func:`apply_scores` returns a new
``Pick``; persisting it is the caller's job.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pickedge.core.engine_config import EngineConfig, get_engine_config
from pickedge.schemas import Pick
from pickedge.services.team_resolver import (
    Side,
    TotalSide,
    resolve_pick_total_side,
    resolve_side,
    resolve_spread_side,
)

logger = logging.getLogger(__name__)


@dataclass
class MarketResult:
    result: str                         # pending | win | loss | push
    side: Optional[str] = None          # home/away or over/under, as resolved
    margin: Optional[float] = None      # ATS: (home − away) + spread
    total_points: Optional[int] = None
    line: Optional[float] = None


@dataclass
class CalculatedResults:
    moneyline: MarketResult
    ats: MarketResult
    over_under: MarketResult
    has_scores: bool


PENDING = "pending"


# ---------------------------------------------------------------------------
# Per-market resolution (pure functions)
# ---------------------------------------------------------------------------

def resolve_moneyline(pick: Pick) -> MarketResult:
    """Winner vs. the side named in ``pick.prediction``.  Ties push."""
    game = pick.game_info
    if not game.has_scores:
        return MarketResult(PENDING)

    if game.home_score == game.away_score:
        return MarketResult("push")

    side = resolve_side(pick.prediction, game.home_team, game.away_team)
    if side is Side.UNKNOWN:
        logger.debug("Moneyline side unresolved for pick %s: %r", pick.id, pick.prediction)
        return MarketResult(PENDING)

    winner = Side.HOME if game.home_score > game.away_score else Side.AWAY
    return MarketResult("win" if side is winner else "loss", side=side.value)


def resolve_ats(pick: Pick, push_threshold: Optional[float] = None) -> MarketResult:
    """
    Grade ``pick.spread_prediction`` against the home-perspective spread.

    adjusted_margin = (home − away) + spread.  The home side covers when it
    is positive, the away side when it is negative; within the push
    threshold of zero it is a push.
    """
    game = pick.game_info
    if push_threshold is None:
        push_threshold = get_engine_config().push_threshold

    if not game.has_scores or game.spread is None or not pick.spread_prediction:
        return MarketResult(PENDING, line=game.spread)

    side = resolve_spread_side(pick.spread_prediction, game)
    if side is Side.UNKNOWN:
        logger.debug("ATS side unresolved for pick %s: %r", pick.id, pick.spread_prediction)
        return MarketResult(PENDING, line=game.spread)

    margin = (game.home_score - game.away_score) + game.spread
    if abs(margin) < push_threshold:
        result = "push"
    elif side is Side.HOME:
        result = "win" if margin > 0 else "loss"
    else:
        result = "win" if margin < 0 else "loss"

    return MarketResult(result, side=side.value, margin=margin, line=game.spread)


def resolve_total(pick: Pick, push_threshold: Optional[float] = None) -> MarketResult:
    """
    Grade the over/under.  Reads ``pick.ou_prediction``, falling back to the
    moneyline text when the totals text names no direction.
    """
    game = pick.game_info
    if push_threshold is None:
        push_threshold = get_engine_config().push_threshold

    line = game.over_under
    if not game.has_scores or not line:
        return MarketResult(PENDING, line=line)

    total = game.home_score + game.away_score
    side = resolve_pick_total_side(pick.ou_prediction, pick.prediction)
    if side is TotalSide.UNKNOWN:
        return MarketResult(PENDING, total_points=total, line=line)

    if abs(total - line) < push_threshold:
        result = "push"
    elif (total > line and side is TotalSide.OVER) or (total < line and side is TotalSide.UNDER):
        result = "win"
    else:
        result = "loss"

    return MarketResult(result, side=side.value, total_points=total, line=line)


# ---------------------------------------------------------------------------
# Whole-pick helpers
# ---------------------------------------------------------------------------

def calculate_all_results(pick: Pick, config: Optional[EngineConfig] = None) -> CalculatedResults:
    """Grade all three markets independently."""
    cfg = config or get_engine_config()
    if not pick.game_info.has_scores:
        return CalculatedResults(
            moneyline=MarketResult(PENDING),
            ats=MarketResult(PENDING, line=pick.game_info.spread),
            over_under=MarketResult(PENDING, line=pick.game_info.over_under),
            has_scores=False,
        )

    return CalculatedResults(
        moneyline=resolve_moneyline(pick),
        ats=resolve_ats(pick, cfg.push_threshold),
        over_under=resolve_total(pick, cfg.push_threshold),
        has_scores=True,
    )


def apply_scores(
    pick: Pick,
    home_score: int,
    away_score: int,
    config: Optional[EngineConfig] = None,
) -> Pick:
    """
    Enter final scores and re-grade.

    Returns a new ``Pick`` with ``game_info`` scores set and ``result``,
    ``ats_result`` and ``ou_result`` updated.  The input is not modified.
    """
    if home_score < 0 or away_score < 0:
        raise ValueError(f"scores must be non-negative, got {home_score}-{away_score}")

    game = pick.game_info.model_copy(update={"home_score": home_score, "away_score": away_score})
    scored = pick.model_copy(update={"game_info": game})
    results = calculate_all_results(scored, config)

    logger.info(
        "Graded pick %s (%s %d-%d): ml=%s ats=%s ou=%s",
        pick.id, pick.matchup, home_score, away_score,
        results.moneyline.result, results.ats.result, results.over_under.result,
    )
    return scored.model_copy(update={
        "result": results.moneyline.result,
        "ats_result": results.ats.result,
        "ou_result": results.over_under.result,
    })


def result_fields(results: CalculatedResults) -> dict:
    """The three result columns, as a store update payload."""
    return {
        "result": results.moneyline.result,
        "ats_result": results.ats.result,
        "ou_result": results.over_under.result,
    }
