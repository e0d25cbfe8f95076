"""
Database models for the Accuracy Engine prediction ledger
SQLAlchemy ORM (SQLite by default, PostgreSQL in production)
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
    Index,
)
from sqlalchemy.orm import declarative_base, sessionmaker, validates
from datetime import datetime, timezone
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./accuracy_engine.db")

# SQLite connections are per-thread unless told otherwise
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=False, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=None):
    """Create every table that does not exist yet."""
    Base.metadata.create_all(bind=bind or engine)


def _utcnow() -> datetime:
    """Naive UTC timestamp (the column type is timezone-less)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Written once at log time, never changed afterwards
SNAPSHOT_COLUMNS = (
    "raw_probabilities",
    "calibrated_probabilities",
    "market_probabilities",
    "edge",
    "data_quality",
    "volatility",
)

# Written once at settlement
RESULT_COLUMNS = ("home_score", "away_score", "outcome", "settled_at")


class PredictionLog(Base):
    """One immutable prediction snapshot plus its (single) settlement"""

    __tablename__ = "predictions"

    # pred_<match_id>_<epoch ms>
    id = Column(String, primary_key=True)
    match_id = Column(String, nullable=False, index=True)
    sport = Column(String, nullable=False, index=True)
    league = Column(String, nullable=False, default="")
    home_team = Column(String, nullable=False)
    away_team = Column(String, nullable=False)
    kickoff = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    # Snapshot at creation time
    raw_probabilities = Column(JSON, nullable=False)
    calibrated_probabilities = Column(JSON, nullable=False)
    market_probabilities = Column(JSON, nullable=False)
    edge = Column(JSON, nullable=False)
    data_quality = Column(JSON, nullable=False)
    volatility = Column(JSON, nullable=False)

    # Copied out of data_quality for filtering: INSUFFICIENT | LOW | MEDIUM | HIGH
    data_quality_level = Column(String, nullable=False, index=True)

    # Settlement (NULL until settled)
    settled = Column(Boolean, nullable=False, default=False)
    home_score = Column(Integer)
    away_score = Column(Integer)
    outcome = Column(String)  # "home" | "away" | "draw"
    settled_at = Column(DateTime)

    # Closing line, decimal odds
    closing_home = Column(Float)
    closing_away = Column(Float)
    closing_draw = Column(Float)
    closing_captured_at = Column(DateTime)

    __table_args__ = (
        Index("ix_predictions_match_settled", "match_id", "settled"),
    )

    @validates(*SNAPSHOT_COLUMNS, *RESULT_COLUMNS)
    def _write_once(self, key, value):
        if getattr(self, key) is not None:
            raise ValueError(f"PredictionLog.{key} is immutable once written (id={self.id})")
        return value

    @property
    def result(self):
        """Settled result as a dict, or None while pending."""
        if self.outcome is None:
            return None
        return {
            "home_score": self.home_score,
            "away_score": self.away_score,
            "outcome": self.outcome,
            "settled_at": self.settled_at,
        }

    @property
    def closing_odds(self):
        """Closing decimal odds as a dict, or None when none were captured."""
        if self.closing_home is None or self.closing_away is None:
            return None
        return {
            "home": self.closing_home,
            "away": self.closing_away,
            "draw": self.closing_draw,
            "captured_at": self.closing_captured_at,
        }

    def __repr__(self):
        return (
            f"<PredictionLog {self.id} {self.home_team} v {self.away_team} "
            f"settled={self.settled}>"
        )
