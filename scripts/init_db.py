#!/usr/bin/env python3
"""
Database initialization script
Creates the predictions table, optionally dropping it first
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

from accuracy_engine.models import Base, engine, init_db, SessionLocal, DATABASE_URL
from accuracy_engine.services.ledger import PredictionLedger
import logging
from sqlalchemy import text, inspect
from sqlalchemy.exc import SQLAlchemyError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init_database(drop_existing: bool = False, assume_yes: bool = False):
    """
    Create the predictions table if it is missing

    Args:
        drop_existing: If True, drops all tables first (DANGER: data loss!)
        assume_yes: Skip the interactive confirmation for --drop
    """
    logger.info("🔧 Initializing Accuracy Engine ledger at %s", DATABASE_URL)

    if drop_existing:
        logger.warning("⚠️  --drop given: every logged prediction will be lost")
        if not assume_yes:
            response = input("Are you sure? This will delete every logged prediction. Type 'yes' to confirm: ")
            if response.lower() != 'yes':
                logger.info("Aborted.")
                return False

        Base.metadata.drop_all(bind=engine)
        logger.info("✅ Prediction ledger dropped")

    init_db(bind=engine)
    tables = inspect(engine).get_table_names()
    logger.info("✅ Ledger schema ready (%d table(s): %s)", len(tables), ", ".join(tables))
    return True


def check_connection():
    """Ping the database and log ledger counts when the table exists"""
    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
            if inspect(engine).has_table("predictions"):
                stats = PredictionLedger(db).get_store_stats()
                logger.info(
                    "Ledger: %d predictions (%d settled, %d pending) %s",
                    stats["total"], stats["settled"], stats["pending"], stats["by_sport"],
                )
        finally:
            db.close()
        logger.info("✅ Connected to %s", DATABASE_URL)
        return True
    except SQLAlchemyError as e:
        logger.error("❌ Could not reach %s: %s", DATABASE_URL, e)
        return False


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Initialize the Accuracy Engine ledger database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables (DANGER!)")
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation with --drop")
    parser.add_argument("--check", action="store_true", help="Only ping the database and print ledger counts")

    args = parser.parse_args()

    if args.check:
        sys.exit(0 if check_connection() else 1)

    init_database(drop_existing=args.drop, assume_yes=args.yes)
    sys.exit(0 if check_connection() else 1)
