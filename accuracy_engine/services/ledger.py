"""
Prediction ledger: append-only prediction snapshots, settled exactly once.

Lifecycle:
  log_prediction()      pre-match  - one new immutable PredictionLog row
  settle_prediction()   post-match - attach result + closing odds to the
                                     oldest unsettled row for the match
  get_filtered_predictions() / get_store_stats()   read side for backtests
  prune_old_predictions()                          maintenance
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from accuracy_engine.core.model_inputs import RawProbabilities
from accuracy_engine.models import PredictionLog, _utcnow
from accuracy_engine.schemas import (
    DATA_QUALITY_ORDER,
    CalibratedProbabilities,
    ClosingOdds,
    DataQuality,
    EdgeResult,
    MarketProbabilities,
    MatchScore,
    RawProbabilitiesIn,
    VolatilityMetrics,
)

logger = logging.getLogger(__name__)

OUTCOME_HOME = "home"
OUTCOME_AWAY = "away"
OUTCOME_DRAW = "draw"


def determine_outcome(home_score: int, away_score: int) -> str:
    """'home' if home scored more, 'away' if away scored more, else 'draw'."""
    if home_score > away_score:
        return OUTCOME_HOME
    if away_score > home_score:
        return OUTCOME_AWAY
    return OUTCOME_DRAW


def _snapshot(value, schema) -> Dict:
    """Validate a snapshot payload (model, dataclass or dict) into a JSON-safe dict."""
    if isinstance(value, RawProbabilities):
        value = value.to_dict()
    if not isinstance(value, schema):
        value = schema.model_validate(value)
    return value.model_dump(mode="json")


@dataclass
class BacktestFilter:
    """
    Slice of the ledger to evaluate.  Every field is optional.

    league is a case-insensitive substring match; start/end bound kickoff
    inclusively; min_data_quality keeps records at or above that tier
    (INSUFFICIENT < LOW < MEDIUM < HIGH).
    """
    sport: Optional[str] = None
    league: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_data_quality: Optional[str] = None
    settled_only: bool = False


class PredictionLedger:
    """Session-bound access to the predictions table."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Ledger %s failed, rolled back: %s", action, exc, exc_info=True)
            raise

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def _new_id(self, match_id: str, created_at: datetime) -> str:
        # created_at is naive UTC; bump the millisecond stamp until the id is free
        stamp = int(created_at.replace(tzinfo=timezone.utc).timestamp() * 1000)
        while True:
            candidate = f"pred_{match_id}_{stamp}"
            if self.db.get(PredictionLog, candidate) is None:
                return candidate
            stamp += 1

    def log_prediction(
        self,
        match_id: str,
        sport: str,
        league: str,
        home_team: str,
        away_team: str,
        kickoff: datetime,
        raw_probabilities: Union[RawProbabilities, RawProbabilitiesIn, Dict],
        calibrated_probabilities: Union[CalibratedProbabilities, Dict],
        market_probabilities: Union[MarketProbabilities, Dict],
        edge: Union[EdgeResult, Dict],
        data_quality: Union[DataQuality, Dict],
        volatility: Union[VolatilityMetrics, Dict],
    ) -> PredictionLog:
        """
        Append one new prediction snapshot.  Never touches existing rows.

        Raises:
            pydantic.ValidationError: if any snapshot payload is malformed.
        """
        quality = _snapshot(data_quality, DataQuality)
        created_at = _utcnow()
        record = PredictionLog(
            id=self._new_id(match_id, created_at),
            match_id=match_id,
            sport=sport,
            league=league or "",
            home_team=home_team,
            away_team=away_team,
            kickoff=kickoff,
            created_at=created_at,
            raw_probabilities=_snapshot(raw_probabilities, RawProbabilitiesIn),
            calibrated_probabilities=_snapshot(calibrated_probabilities, CalibratedProbabilities),
            market_probabilities=_snapshot(market_probabilities, MarketProbabilities),
            edge=_snapshot(edge, EdgeResult),
            data_quality=quality,
            volatility=_snapshot(volatility, VolatilityMetrics),
            data_quality_level=quality["level"],
            settled=False,
        )
        self.db.add(record)
        self._commit(f"log for match {match_id}")
        self.db.refresh(record)
        logger.info(
            "Logged prediction %s: %s v %s (%s, %s)",
            record.id, home_team, away_team, sport, league,
        )
        return record

    def settle_prediction(
        self,
        match_id: str,
        result: Union[MatchScore, Dict],
        closing_odds: Optional[Union[ClosingOdds, Dict]] = None,
    ) -> Optional[PredictionLog]:
        """
        Settle the oldest unsettled prediction for ``match_id``.

        Returns the updated row, or None when nothing is left to settle
        (including a second call for an already-settled match).
        """
        score = result if isinstance(result, MatchScore) else MatchScore.model_validate(result)
        closing = None
        if closing_odds is not None:
            closing = (
                closing_odds if isinstance(closing_odds, ClosingOdds)
                else ClosingOdds.model_validate(closing_odds)
            )

        record = (
            self.db.query(PredictionLog)
            .filter(PredictionLog.match_id == match_id, PredictionLog.settled.is_(False))
            .order_by(PredictionLog.created_at, PredictionLog.id)
            .with_for_update()
            .first()
        )
        if record is None:
            logger.debug("Nothing to settle for match %s", match_id)
            return None

        record.home_score = score.home_score
        record.away_score = score.away_score
        record.outcome = determine_outcome(score.home_score, score.away_score)
        record.settled_at = _utcnow()
        record.settled = True

        if closing is not None:
            record.closing_home = closing.home
            record.closing_away = closing.away
            record.closing_draw = closing.draw
            record.closing_captured_at = closing.captured_at

        self._commit(f"settle for match {match_id}")
        self.db.refresh(record)
        logger.info(
            "Settled %s: %s %d - %d %s (%s)",
            record.id, record.home_team, score.home_score,
            score.away_score, record.away_team, record.outcome,
        )
        return record

    def prune_old_predictions(self, older_than: datetime) -> int:
        """Delete every record whose kickoff is strictly before ``older_than``."""
        try:
            removed = (
                self.db.query(PredictionLog)
                .filter(PredictionLog.kickoff < older_than)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Ledger prune failed, rolled back: %s", exc, exc_info=True)
            raise
        logger.info("Pruned %d prediction(s) with kickoff before %s", removed, older_than)
        return removed

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def get_prediction(self, prediction_id: str) -> Optional[PredictionLog]:
        return self.db.get(PredictionLog, prediction_id)

    def get_predictions_for_match(self, match_id: str) -> List[PredictionLog]:
        return (
            self.db.query(PredictionLog)
            .filter(PredictionLog.match_id == match_id)
            .order_by(PredictionLog.created_at, PredictionLog.id)
            .all()
        )

    def get_filtered_predictions(
        self, filter: Optional[BacktestFilter] = None
    ) -> List[PredictionLog]:
        """Records matching every set field of ``filter``, oldest kickoff first."""
        f = filter or BacktestFilter()
        query = self.db.query(PredictionLog)

        if f.sport:
            query = query.filter(PredictionLog.sport == f.sport)
        if f.league:
            query = query.filter(PredictionLog.league.icontains(f.league, autoescape=True))
        if f.start_date is not None:
            query = query.filter(PredictionLog.kickoff >= f.start_date)
        if f.end_date is not None:
            query = query.filter(PredictionLog.kickoff <= f.end_date)
        if f.settled_only:
            query = query.filter(PredictionLog.settled.is_(True))
        if f.min_data_quality:
            if f.min_data_quality not in DATA_QUALITY_ORDER:
                raise ValueError(
                    f"Unknown data quality level {f.min_data_quality!r}; "
                    f"expected one of {DATA_QUALITY_ORDER}"
                )
            allowed = DATA_QUALITY_ORDER[DATA_QUALITY_ORDER.index(f.min_data_quality):]
            query = query.filter(PredictionLog.data_quality_level.in_(allowed))

        return query.order_by(PredictionLog.kickoff, PredictionLog.id).all()

    def get_store_stats(self) -> Dict:
        """Counts of total / settled / pending records and records per sport."""
        total = self.db.query(func.count(PredictionLog.id)).scalar() or 0
        settled = (
            self.db.query(func.count(PredictionLog.id))
            .filter(PredictionLog.settled.is_(True))
            .scalar()
        ) or 0
        by_sport = dict(
            self.db.query(PredictionLog.sport, func.count(PredictionLog.id))
            .group_by(PredictionLog.sport)
            .all()
        )
        return {
            "total": total,
            "settled": settled,
            "pending": total - settled,
            "by_sport": by_sport,
        }
