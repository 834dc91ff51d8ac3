"""
Pydantic schemas for picks and the Pick Edge API.

``Pick`` and its nested ``GameInfo`` / ``MonteCarloResults`` are the
in-memory representation every service works on.  Rows in the ``picks``
table are converted to and from these models in :mod:`pickedge.models`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

BetResult = Literal["pending", "win", "loss", "push"]
VALID_RESULTS: tuple[str, ...] = ("pending", "win", "loss", "push")


def _validate_american(v: Optional[float]) -> Optional[float]:
    # 0 is accepted and treated as "no price" downstream; it never prices a bet.
    if v is None or v == 0:
        return v
    if -100 < v < 100:
        raise ValueError(
            f"odds={v} is not valid American odds. Must be >= +100 or <= -100."
        )
    return v


# ---------------------------------------------------------------------------
# Game and simulation snapshots
# ---------------------------------------------------------------------------

class GameInfo(BaseModel):
    """Matchup, final score, lines and prices for the game a pick is about."""

    home_team: str = Field(..., min_length=1)
    away_team: str = Field(..., min_length=1)
    game_date: Optional[datetime] = Field(None, description="Scheduled kickoff")

    home_score: Optional[int] = Field(None, ge=0)
    away_score: Optional[int] = Field(None, ge=0)

    spread: Optional[float] = Field(
        None, description="Home-perspective line, e.g. -3.5 = home favoured by 3.5"
    )
    over_under: Optional[float] = Field(None, gt=0)

    home_ml_odds: Optional[float] = None
    away_ml_odds: Optional[float] = None
    spread_odds: Optional[float] = None
    over_odds: Optional[float] = None
    under_odds: Optional[float] = None

    favorite_team: Optional[str] = None
    underdog_team: Optional[str] = None
    favorite_is_home: Optional[bool] = None

    @field_validator("home_ml_odds", "away_ml_odds", "spread_odds", "over_odds", "under_odds")
    @classmethod
    def validate_odds(cls, v: Optional[float]) -> Optional[float]:
        return _validate_american(v)

    @property
    def has_scores(self) -> bool:
        return self.home_score is not None and self.away_score is not None


class MonteCarloResults(BaseModel):
    """Simulator output for one game.  Probabilities are percentages (0–100)."""

    moneyline_probability: Optional[float] = Field(None, ge=0, le=100)
    home_win_probability: Optional[float] = Field(None, ge=0, le=100)
    away_win_probability: Optional[float] = Field(None, ge=0, le=100)

    favorite_cover_probability: Optional[float] = Field(None, ge=0, le=100)
    underdog_cover_probability: Optional[float] = Field(None, ge=0, le=100)

    over_probability: Optional[float] = Field(None, ge=0, le=100)
    under_probability: Optional[float] = Field(None, ge=0, le=100)

    predicted_home_score: Optional[float] = None
    predicted_away_score: Optional[float] = None


# ---------------------------------------------------------------------------
# Pick
# ---------------------------------------------------------------------------

class Pick(BaseModel):
    """
    One prediction for one game, with three independently graded markets.

    ``prediction`` is the moneyline text, ``spread_prediction`` the ATS
    text and ``ou_prediction`` the totals text.  Each market has its own
    result and edge field.
    """

    id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    week: Optional[int] = Field(None, ge=1, le=22)
    schedule_id: Optional[str] = None

    game_info: GameInfo

    prediction: str = ""
    spread_prediction: Optional[str] = None
    ou_prediction: Optional[str] = None

    confidence: float = Field(50.0, ge=0, le=100)
    reasoning: str = ""

    result: BetResult = "pending"
    ats_result: BetResult = "pending"
    ou_result: BetResult = "pending"

    moneyline_edge: float = 0.0
    spread_edge: float = 0.0
    ou_edge: float = 0.0

    monte_carlo_results: Optional[MonteCarloResults] = None

    is_pinned: bool = False

    @field_validator("ats_result", "ou_result", mode="before")
    @classmethod
    def default_pending(cls, v: Any) -> Any:
        # Legacy rows store NULL for markets that were never graded.
        return "pending" if v is None else v

    @property
    def matchup(self) -> str:
        return f"{self.game_info.away_team} @ {self.game_info.home_team}"


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------

class ScoreEntry(BaseModel):
    """Payload for PUT /api/picks/{pick_id}/scores."""

    home_score: int = Field(..., ge=0)
    away_score: int = Field(..., ge=0)

    model_config = {
        "json_schema_extra": {"example": {"home_score": 24, "away_score": 20}}
    }


class BatchOperationIn(BaseModel):
    """One queued edit, as sent by the admin UI."""

    id: str
    type: Literal["update", "delete"]
    payload: Optional[dict[str, Any]] = None


class BatchRequest(BaseModel):
    """Payload for POST /api/picks/batch."""

    operations: list[BatchOperationIn] = Field(..., min_length=1)
    continue_on_error: bool = False
    validate_before_commit: bool = True

    model_config = {
        "json_schema_extra": {
            "example": {
                "operations": [
                    {"id": "p-1", "type": "update", "payload": {"result": "win"}},
                    {"id": "p-2", "type": "delete"},
                ],
                "continue_on_error": False,
            }
        }
    }


class BatchResponse(BaseModel):
    success: bool
    summary: str
    succeeded: list[str]
    failed: list[str]
    error: Optional[str] = None


class CleanupResponse(BaseModel):
    deleted_count: int
    failed_count: int
    errors: list[dict[str, str]]


class MarketEdgeResponse(BaseModel):
    market: str
    side: str
    probability: Optional[float]
    odds: Optional[float]
    raw_edge: float
    edge: float
    tier: str
    kelly_stake: float
