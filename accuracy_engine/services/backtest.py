"""
Backtest and calibration metrics over settled ledger records.

Everything here is read-only: functions take PredictionLog rows (or any
object exposing the same attributes) and return plain values or
dataclasses.  Metrics score the *calibrated* probabilities, since those
are what the product shows.

Binary evaluation convention: each settled record contributes two binary
events, "home won" scored against the home probability and "away won"
scored against the away probability.  Draws make both events 0.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

LOG_LOSS_EPS = 1e-15
DEFAULT_BUCKETS = 10
ACCURACY_THRESHOLDS: Tuple[float, ...] = (0.50, 0.55, 0.60, 0.65, 0.70, 0.75)


@dataclass(frozen=True)
class Evaluation:
    """One binary forecast: predicted probability vs 0/1 outcome."""
    predicted: float
    actual: int


@dataclass
class CalibrationBucket:
    lower: float
    upper: float
    predictions: int
    wins: int
    expected_win_rate: float
    actual_win_rate: float
    calibration_error: float

    @property
    def range(self) -> Tuple[float, float]:
        return (self.lower, self.upper)


@dataclass
class ThresholdAccuracy:
    threshold: float
    accuracy: float
    coverage: float


@dataclass
class BacktestMetrics:
    total_predictions: int = 0
    brier_score: float = 0.0
    log_loss: float = 0.0
    calibration_error: float = 0.0
    calibration_buckets: List[CalibrationBucket] = field(default_factory=list)
    accuracy_at_threshold: List[ThresholdAccuracy] = field(default_factory=list)
    brier_score_vs_market: float = 0.0
    by_league: Dict[str, Dict] = field(default_factory=dict)
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None

    def to_dict(self) -> Dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------

def _arrays(evaluations: Sequence[Evaluation]) -> Tuple[np.ndarray, np.ndarray]:
    predicted = np.fromiter((e.predicted for e in evaluations), dtype=float, count=len(evaluations))
    actual = np.fromiter((e.actual for e in evaluations), dtype=float, count=len(evaluations))
    return predicted, actual


def calculate_brier_score(evaluations: Sequence[Evaluation]) -> float:
    """Mean squared error of the forecasts.  0 = perfect; 0.0 for no input."""
    if not evaluations:
        return 0.0
    predicted, actual = _arrays(evaluations)
    return float(np.mean((predicted - actual) ** 2))


def calculate_log_loss(evaluations: Sequence[Evaluation]) -> float:
    """Mean negative log-likelihood, forecasts clipped to [1e-15, 1 - 1e-15]."""
    if not evaluations:
        return 0.0
    predicted, actual = _arrays(evaluations)
    p = np.clip(predicted, LOG_LOSS_EPS, 1.0 - LOG_LOSS_EPS)
    losses = -(actual * np.log(p) + (1.0 - actual) * np.log(1.0 - p))
    return float(np.mean(losses))


def create_calibration_buckets(
    evaluations: Sequence[Evaluation],
    num_buckets: int = DEFAULT_BUCKETS,
) -> List[CalibrationBucket]:
    """
    Partition [0, 1] into equal-width [lo, hi) buckets.

    A forecast of exactly 1.0 lands in the last bucket.  Each bucket's
    expected win rate is its midpoint; empty buckets report an actual
    win rate of 0.
    """
    width = 1.0 / num_buckets
    counts = [0] * num_buckets
    wins = [0] * num_buckets

    for e in evaluations:
        idx = min(max(int(e.predicted * num_buckets), 0), num_buckets - 1)
        counts[idx] += 1
        wins[idx] += 1 if e.actual == 1 else 0

    buckets: List[CalibrationBucket] = []
    for i in range(num_buckets):
        lower, upper = i * width, (i + 1) * width
        expected = (lower + upper) / 2.0
        actual = wins[i] / counts[i] if counts[i] else 0.0
        buckets.append(CalibrationBucket(
            lower=lower,
            upper=upper,
            predictions=counts[i],
            wins=wins[i],
            expected_win_rate=expected,
            actual_win_rate=actual,
            calibration_error=abs(expected - actual),
        ))
    return buckets


def calculate_ece(buckets: Sequence[CalibrationBucket]) -> float:
    """Expected Calibration Error: prediction-weighted mean bucket error."""
    total = sum(b.predictions for b in buckets)
    if total == 0:
        return 0.0
    return sum(b.predictions / total * b.calibration_error for b in buckets)


# ---------------------------------------------------------------------------
# Record helpers
# ---------------------------------------------------------------------------

def settled_records(records: Iterable) -> List:
    return [r for r in records if r.outcome is not None]


def predicted_outcome(probs: Dict) -> str:
    """Highest-probability outcome; ties favour home, then away."""
    home = probs.get("home") or 0.0
    away = probs.get("away") or 0.0
    draw = probs.get("draw") or 0.0
    if home >= away and home >= draw:
        return "home"
    if away >= draw:
        return "away"
    return "draw"


def max_probability(probs: Dict) -> float:
    return max(probs.get("home") or 0.0, probs.get("away") or 0.0, probs.get("draw") or 0.0)


def market_home_probability(record) -> float:
    return record.market_probabilities["implied_probabilities_no_vig"]["home"]


def home_evaluations(records: Iterable) -> List[Evaluation]:
    return [
        Evaluation(r.calibrated_probabilities["home"], int(r.outcome == "home"))
        for r in records
    ]


def away_evaluations(records: Iterable) -> List[Evaluation]:
    return [
        Evaluation(r.calibrated_probabilities["away"], int(r.outcome == "away"))
        for r in records
    ]


def market_evaluations(records: Iterable) -> List[Evaluation]:
    return [
        Evaluation(market_home_probability(r), int(r.outcome == "home"))
        for r in records
    ]


def calculate_accuracy_at_threshold(
    records: Sequence,
    thresholds: Sequence[float] = ACCURACY_THRESHOLDS,
) -> List[ThresholdAccuracy]:
    """
    Accuracy/coverage trade-off.

    For each threshold keep the records whose top outcome probability
    reaches it; accuracy is the share whose top outcome happened and
    coverage is the share of all records kept.
    """
    total = len(records)
    results = []
    for threshold in thresholds:
        qualifying = [
            r for r in records
            if max_probability(r.calibrated_probabilities) >= threshold
        ]
        correct = sum(
            1 for r in qualifying
            if predicted_outcome(r.calibrated_probabilities) == r.outcome
        )
        results.append(ThresholdAccuracy(
            threshold=threshold,
            accuracy=correct / len(qualifying) if qualifying else 0.0,
            coverage=len(qualifying) / total if total else 0.0,
        ))
    return results


# ---------------------------------------------------------------------------
# calculate_backtest_metrics
# ---------------------------------------------------------------------------

def calculate_backtest_metrics(
    records: Iterable,
    num_buckets: int = DEFAULT_BUCKETS,
) -> BacktestMetrics:
    """
    Aggregate metrics over the settled subset of ``records``.

    brier_score, log_loss and the calibration buckets pool the home and
    away binary events.  brier_score_vs_market compares home-event Brier
    scores like for like (model home probability vs the market's no-vig
    home probability); negative means the model beat the market.  It is
    therefore not the pooled brier_score minus the market Brier.
    """
    settled = settled_records(records)
    if not settled:
        return BacktestMetrics()

    pooled = home_evaluations(settled) + away_evaluations(settled)
    buckets = create_calibration_buckets(pooled, num_buckets)

    model_home_brier = calculate_brier_score(home_evaluations(settled))
    market_brier = calculate_brier_score(market_evaluations(settled))

    leagues: Dict[str, List] = {}
    for r in settled:
        leagues.setdefault(r.league or "", []).append(r)
    by_league = {
        league: {
            "brier_score": calculate_brier_score(
                home_evaluations(rs) + away_evaluations(rs)
            ),
            "predictions": len(rs),
        }
        for league, rs in leagues.items()
    }

    kickoffs = [r.kickoff for r in settled if r.kickoff is not None]
    metrics = BacktestMetrics(
        total_predictions=len(settled),
        brier_score=calculate_brier_score(pooled),
        log_loss=calculate_log_loss(pooled),
        calibration_error=calculate_ece(buckets),
        calibration_buckets=buckets,
        accuracy_at_threshold=calculate_accuracy_at_threshold(settled),
        brier_score_vs_market=model_home_brier - market_brier,
        by_league=by_league,
        period_start=min(kickoffs) if kickoffs else None,
        period_end=max(kickoffs) if kickoffs else None,
    )
    logger.debug(
        "Backtest over %d settled predictions: brier=%.4f logloss=%.4f ece=%.4f",
        metrics.total_predictions, metrics.brier_score,
        metrics.log_loss, metrics.calibration_error,
    )
    return metrics
