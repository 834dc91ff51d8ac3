"""
Database models for Pick Edge
SQLAlchemy ORM; PostgreSQL in production, SQLite for local runs and tests
"""

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Boolean,
    JSON,
    Text,
)
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from datetime import datetime
import os
from dotenv import load_dotenv

from pickedge.schemas import GameInfo, MonteCarloResults, Pick

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://postgres@127.0.0.1:5432/pick_edge")


def _engine_kwargs(url: str) -> dict:
    # In-memory SQLite must share one connection or every session sees an empty DB.
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True}


engine = create_engine(DATABASE_URL, echo=False, **_engine_kwargs(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class PickRecord(Base):
    """One stored pick.  No uniqueness on the game: duplicates are handled in the app."""

    __tablename__ = "picks"

    id = Column(String, primary_key=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    week = Column(Integer, index=True)
    schedule_id = Column(String)

    # Matchup, scores, lines and prices (GameInfo)
    game_info = Column(JSON, nullable=False)

    # Predictions
    prediction = Column(Text, default="")
    spread_prediction = Column(Text)
    ou_prediction = Column(Text)
    confidence = Column(Float, default=50.0)
    reasoning = Column(Text, default="")

    # Results: pending | win | loss | push
    result = Column(String, default="pending", nullable=False, index=True)
    ats_result = Column(String, default="pending")
    ou_result = Column(String, default="pending")

    # Published (shrunk) edges, percent
    moneyline_edge = Column(Float, default=0.0)
    spread_edge = Column(Float, default=0.0)
    ou_edge = Column(Float, default=0.0)

    # Simulator snapshot (MonteCarloResults)
    monte_carlo_results = Column(JSON)

    is_pinned = Column(Boolean, default=False)

    def to_schema(self) -> Pick:
        return Pick(
            id=self.id,
            created_at=self.created_at or datetime.utcnow(),
            week=self.week,
            schedule_id=self.schedule_id,
            game_info=GameInfo.model_validate(self.game_info),
            prediction=self.prediction or "",
            spread_prediction=self.spread_prediction,
            ou_prediction=self.ou_prediction,
            confidence=self.confidence if self.confidence is not None else 50.0,
            reasoning=self.reasoning or "",
            result=self.result or "pending",
            ats_result=self.ats_result,
            ou_result=self.ou_result,
            moneyline_edge=self.moneyline_edge or 0.0,
            spread_edge=self.spread_edge or 0.0,
            ou_edge=self.ou_edge or 0.0,
            monte_carlo_results=(
                MonteCarloResults.model_validate(self.monte_carlo_results)
                if self.monte_carlo_results else None
            ),
            is_pinned=bool(self.is_pinned),
        )

    @classmethod
    def from_schema(cls, pick: Pick) -> "PickRecord":
        record = cls(id=pick.id, created_at=pick.created_at)
        record.apply(to_column_values(pick.model_dump(exclude={"id", "created_at"})))
        return record

    def apply(self, values: dict) -> None:
        for key, value in values.items():
            setattr(self, key, value)


def to_column_values(fields: dict) -> dict:
    """Convert schema-level field values to what the JSON/plain columns store."""
    values = {}
    for key, value in fields.items():
        if key == "game_info" and value is not None:
            value = GameInfo.model_validate(value).model_dump(mode="json")
        elif key == "monte_carlo_results" and value is not None:
            value = MonteCarloResults.model_validate(value).model_dump(mode="json")
        values[key] = value
    return values
