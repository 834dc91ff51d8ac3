#!/usr/bin/env python3
"""
Database initialization script
Creates the picks table and optionally seeds a sample pick
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Load .env file
from dotenv import load_dotenv
load_dotenv()

from pickedge.models import Base, engine, SessionLocal, PickRecord
from pickedge.schemas import GameInfo, MonteCarloResults, Pick
from datetime import datetime
import logging
from sqlalchemy import text, inspect

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init_database(drop_existing: bool = False):
    """
    Initialize database tables

    Args:
        drop_existing: If True, drops all tables first (DANGER: data loss!)
    """
    logger.info("Initializing Pick Edge database...")

    if drop_existing:
        logger.warning("Dropping all existing tables!")
        response = input("Are you sure? This will delete all data. Type 'yes' to confirm: ")
        if response.lower() != 'yes':
            logger.info("Aborted.")
            return False

        Base.metadata.drop_all(bind=engine)
        logger.info("Existing tables dropped")

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    inspector = inspect(engine)
    logger.info("Tables: %s", ", ".join(inspector.get_table_names()))
    return True


def sample_pick() -> Pick:
    """One ungraded week-1 pick with simulator output and prices."""
    return Pick(
        id="sample-week1-dal-phi",
        created_at=datetime(2025, 9, 3, 12, 0),
        week=1,
        game_info=GameInfo(
            home_team="Philadelphia Eagles",
            away_team="Dallas Cowboys",
            game_date=datetime(2025, 9, 4, 20, 20),
            spread=-7.0,
            over_under=47.5,
            home_ml_odds=-350,
            away_ml_odds=280,
            spread_odds=-110,
            over_odds=-110,
            under_odds=-110,
            favorite_is_home=True,
        ),
        prediction="Eagles win at home",
        spread_prediction="Eagles -7",
        ou_prediction="Under 47.5",
        confidence=72,
        monte_carlo_results=MonteCarloResults(
            home_win_probability=80.0,
            away_win_probability=20.0,
            favorite_cover_probability=55.0,
            over_probability=44.0,
            under_probability=56.0,
        ),
    )


def seed_test_data():
    """Add a sample pick for development"""
    logger.info("Seeding test data...")

    db = SessionLocal()
    try:
        pick = sample_pick()
        if db.get(PickRecord, pick.id) is None:
            db.add(PickRecord.from_schema(pick))
            db.commit()
        logger.info("Test data seeded")
    except Exception as e:
        logger.error("Error seeding data: %s", e)
        db.rollback()
    finally:
        db.close()


def check_connection():
    """Test database connection"""
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        logger.info("Database connection successful")
        return True
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Initialize Pick Edge database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables (DANGER!)")
    parser.add_argument("--seed", action="store_true", help="Seed a sample pick")
    parser.add_argument("--check", action="store_true", help="Only check connection")

    args = parser.parse_args()

    if args.check:
        check_connection()
    else:
        if check_connection():
            if init_database(drop_existing=args.drop) and args.seed:
                seed_test_data()
            logger.info("Database initialization complete!")
        else:
            logger.error("Cannot initialize database - connection failed")
            sys.exit(1)
