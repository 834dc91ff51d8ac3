"""
Per-market betting edges for a pick.

For each market (moneyline, spread, total) the engine resolves the side the
pick backs, picks the matching simulator probability and price, and prices
the bet with :func:`pickedge.core.odds_math.edge`.

Published edge = raw edge × ``edge_shrinkage`` (0.3), rounded to 2 dp.
Simulator probabilities run hot relative to closing prices, so the stored
and displayed number is the shrunk one.  The recommendation tier and the
Kelly stake are computed from the *unshrunk* edge and probability.

A market with no prediction, no matching price or no matching probability
gets an edge of exactly 0.  No default price is ever substituted.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

from pickedge.core.engine_config import EngineConfig, get_engine_config
from pickedge.core.kelly import kelly
from pickedge.core.odds_math import PROB_SCALE, edge, is_valid_price
from pickedge.schemas import GameInfo, MonteCarloResults, Pick
from pickedge.services.pick_store import BasePickStore, StoreError
from pickedge.services.team_resolver import (
    Side,
    SpreadPick,
    TotalSide,
    resolve_pick_total_side,
    resolve_side,
    resolve_spread_side,
    spread_pick_for_side,
)

logger = logging.getLogger(__name__)

MONEYLINE = "moneyline"
SPREAD = "spread"
TOTAL = "total"

STRONG = "Strong"
MODERATE = "Moderate"
AVOID = "Avoid"


@dataclass
class MarketEdge:
    market: str
    side: str                       # home/away, favorite/underdog, over/under, or unknown
    probability: Optional[float]    # 0–100
    odds: Optional[float]
    raw_edge: float
    edge: float                     # published (shrunk, rounded)
    tier: str
    kelly_stake: float              # bankroll fraction

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class PickEdges:
    moneyline: MarketEdge
    spread: MarketEdge
    total: MarketEdge

    def markets(self) -> List[MarketEdge]:
        return [self.moneyline, self.spread, self.total]

    def as_fields(self) -> Dict[str, float]:
        """Edge columns for a store update."""
        return {
            "moneyline_edge": self.moneyline.edge,
            "spread_edge": self.spread.edge,
            "ou_edge": self.total.edge,
        }


def edge_tier(raw_edge: float, config: Optional[EngineConfig] = None) -> str:
    """Recommendation tier from the unshrunk edge: >10 Strong, >5 Moderate."""
    cfg = config or get_engine_config()
    if raw_edge > cfg.strong_edge_pct:
        return STRONG
    if raw_edge > cfg.moderate_edge_pct:
        return MODERATE
    return AVOID


# ---------------------------------------------------------------------------
# Probability / price lookup
# ---------------------------------------------------------------------------

def _moneyline_inputs(side: Side, game: GameInfo, mc: Optional[MonteCarloResults]):
    odds = game.home_ml_odds if side is Side.HOME else game.away_ml_odds
    if mc is None:
        return None, odds
    prob = mc.home_win_probability if side is Side.HOME else mc.away_win_probability
    if prob is None:
        # moneyline_probability is the simulator's number for the predicted side
        prob = mc.moneyline_probability
    return prob, odds


def _spread_inputs(pick: SpreadPick, game: GameInfo, mc: Optional[MonteCarloResults]):
    odds = game.spread_odds
    if mc is None:
        return None, odds
    if pick is SpreadPick.FAVORITE:
        return mc.favorite_cover_probability, odds
    prob = mc.underdog_cover_probability
    if prob is None and mc.favorite_cover_probability is not None:
        prob = PROB_SCALE - mc.favorite_cover_probability
    return prob, odds


def _total_inputs(side: TotalSide, game: GameInfo, mc: Optional[MonteCarloResults]):
    odds = game.over_odds if side is TotalSide.OVER else game.under_odds
    if mc is None:
        return None, odds
    if side is TotalSide.OVER:
        prob = mc.over_probability
        if prob is None and mc.under_probability is not None:
            prob = PROB_SCALE - mc.under_probability
    else:
        prob = mc.under_probability
        if prob is None and mc.over_probability is not None:
            prob = PROB_SCALE - mc.over_probability
    return prob, odds


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class EdgeEngine:
    """Prices each market of a pick against its stored odds."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or get_engine_config()

    def price(
        self,
        market: str,
        side: str,
        probability: Optional[float],
        odds: Optional[float],
    ) -> MarketEdge:
        """Edge, tier and Kelly stake for one side of one market."""
        if probability is None or not is_valid_price(odds):
            logger.warning(
                "No edge for %s %s: probability=%r odds=%r; returning 0",
                market, side, probability, odds,
            )
            return self._zero(market, side, probability, odds)

        raw = edge(probability, odds)
        return MarketEdge(
            market=market,
            side=side,
            probability=probability,
            odds=odds,
            raw_edge=round(raw, 4),
            edge=round(raw * self.config.edge_shrinkage, 2),
            tier=edge_tier(raw, self.config),
            kelly_stake=round(
                kelly(probability / PROB_SCALE, odds, self.config.kelly_fraction), 4
            ),
        )

    @staticmethod
    def _zero(market: str, side: str, probability=None, odds=None) -> MarketEdge:
        return MarketEdge(
            market=market,
            side=side,
            probability=probability,
            odds=odds,
            raw_edge=0.0,
            edge=0.0,
            tier=AVOID,
            kelly_stake=0.0,
        )

    # -- single-side (the side the pick backs) -------------------------------

    def moneyline_edge(self, pick: Pick) -> MarketEdge:
        game = pick.game_info
        side = resolve_side(pick.prediction, game.home_team, game.away_team)
        if side is Side.UNKNOWN:
            return self._zero(MONEYLINE, side.value)
        prob, odds = _moneyline_inputs(side, game, pick.monte_carlo_results)
        return self.price(MONEYLINE, side.value, prob, odds)

    def spread_edge(self, pick: Pick) -> MarketEdge:
        game = pick.game_info
        if not pick.spread_prediction:
            return self._zero(SPREAD, SpreadPick.UNKNOWN.value)
        side = resolve_spread_side(pick.spread_prediction, game)
        spread_pick = spread_pick_for_side(side, game)
        if spread_pick is SpreadPick.UNKNOWN:
            return self._zero(SPREAD, spread_pick.value)
        prob, odds = _spread_inputs(spread_pick, game, pick.monte_carlo_results)
        return self.price(SPREAD, spread_pick.value, prob, odds)

    def total_edge(self, pick: Pick) -> MarketEdge:
        game = pick.game_info
        side = resolve_pick_total_side(pick.ou_prediction, pick.prediction)
        if side is TotalSide.UNKNOWN:
            return self._zero(TOTAL, side.value)
        prob, odds = _total_inputs(side, game, pick.monte_carlo_results)
        return self.price(TOTAL, side.value, prob, odds)

    def calculate_pick_edges(self, pick: Pick) -> PickEdges:
        edges = PickEdges(
            moneyline=self.moneyline_edge(pick),
            spread=self.spread_edge(pick),
            total=self.total_edge(pick),
        )
        logger.debug(
            "Edges for pick %s: ml=%.2f spread=%.2f total=%.2f",
            pick.id, edges.moneyline.edge, edges.spread.edge, edges.total.edge,
        )
        return edges

    def apply_edges(self, pick: Pick) -> Pick:
        """Copy of ``pick`` with its three published edge fields recomputed."""
        return pick.model_copy(update=self.calculate_pick_edges(pick).as_fields())

    # -- display helpers -----------------------------------------------------

    def both_sides_edges(self, pick: Pick) -> Dict[str, Dict[str, MarketEdge]]:
        """Edges for both sides of every market, regardless of the prediction."""
        game = pick.game_info
        mc = pick.monte_carlo_results

        out: Dict[str, Dict[str, MarketEdge]] = {MONEYLINE: {}, SPREAD: {}, TOTAL: {}}
        # moneyline_probability belongs to the predicted side only, so it is not used here
        home_prob = mc.home_win_probability if mc else None
        away_prob = mc.away_win_probability if mc else None
        out[MONEYLINE][Side.HOME.value] = self.price(
            MONEYLINE, Side.HOME.value, home_prob, game.home_ml_odds
        )
        out[MONEYLINE][Side.AWAY.value] = self.price(
            MONEYLINE, Side.AWAY.value, away_prob, game.away_ml_odds
        )
        for spread_pick in (SpreadPick.FAVORITE, SpreadPick.UNDERDOG):
            prob, odds = _spread_inputs(spread_pick, game, mc)
            out[SPREAD][spread_pick.value] = self.price(SPREAD, spread_pick.value, prob, odds)
        for total_side in (TotalSide.OVER, TotalSide.UNDER):
            prob, odds = _total_inputs(total_side, game, mc)
            out[TOTAL][total_side.value] = self.price(TOTAL, total_side.value, prob, odds)
        return out

    def best_bet(self, pick: Pick) -> Optional[MarketEdge]:
        """The backed market with the highest positive published edge, if any."""
        candidates = [m for m in self.calculate_pick_edges(pick).markets() if m.edge > 0]
        if not candidates:
            return None
        return max(candidates, key=lambda m: m.edge)


def _all_edges_zero(pick: Pick) -> bool:
    return pick.moneyline_edge == 0 and pick.spread_edge == 0 and pick.ou_edge == 0


def needs_backfill(pick: Pick) -> bool:
    """True when a pick has simulator output but every stored edge is zero."""
    return pick.monte_carlo_results is not None and _all_edges_zero(pick)


async def backfill_edges(
    store: BasePickStore,
    engine: Optional[EdgeEngine] = None,
    dry_run: bool = False,
) -> Dict[str, int]:
    """
    Compute and store edges for picks whose stored edges are all zero.

    Picks without simulator output are skipped.  A failed update is counted
    and the run continues.
    """
    engine = engine or EdgeEngine()
    candidates = [p for p in await store.get_all() if _all_edges_zero(p)]
    counts = {"candidates": len(candidates), "updated": 0, "skipped": 0, "errors": 0}

    for pick in candidates:
        if pick.monte_carlo_results is None:
            counts["skipped"] += 1
            continue
        fields = engine.calculate_pick_edges(pick).as_fields()
        if dry_run:
            logger.info("[dry run] pick %s: %s", pick.id, fields)
            counts["updated"] += 1
            continue
        try:
            await store.update(pick.id, fields)
            counts["updated"] += 1
        except StoreError as exc:
            logger.error("Failed to store edges for pick %s: %s", pick.id, exc)
            counts["errors"] += 1

    logger.info("Edge backfill%s: %s", " (dry run)" if dry_run else "", counts)
    return counts
