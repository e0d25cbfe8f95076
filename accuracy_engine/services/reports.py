"""
Human-readable calibration and performance reports.

Both reports refuse to emit a metric on too small a sample and return an
explicit ``status: "insufficient_data"`` dict instead.  Minimum sample
sizes come from the environment:

    MIN_PREDICTIONS_FOR_CALIBRATION   (default 20)
    MIN_PREDICTIONS_FOR_PERFORMANCE   (default 10)
"""

import logging
import os
from typing import Dict, Iterable, List, Optional

from accuracy_engine.services.backtest import (
    Evaluation,
    calculate_brier_score,
    calculate_ece,
    create_calibration_buckets,
    home_evaluations,
    market_evaluations,
    predicted_outcome,
    settled_records,
)

logger = logging.getLogger(__name__)

_MIN_CALIBRATION = int(os.getenv("MIN_PREDICTIONS_FOR_CALIBRATION", "20"))
_MIN_PERFORMANCE = int(os.getenv("MIN_PREDICTIONS_FOR_PERFORMANCE", "10"))

# A bucket needs this many predictions before it is judged
_MIN_BUCKET_PREDICTIONS = 5

# Actual minus expected win rate beyond which a bucket is flagged
_CONFIDENCE_TOLERANCE = 0.10

# Brier improvement vs market (percent) separating the three verdicts
_VERDICT_MARGIN_PCT = 5.0

EDGE_QUALITY_LEVELS = ("HIGH", "MEDIUM", "LOW", "SUPPRESSED")


def _insufficient(kind: str, available: int, required: int) -> Dict:
    logger.info(
        "%s report skipped: %d settled predictions, %d required",
        kind, available, required,
    )
    return {
        "status": "insufficient_data",
        "message": (
            f"Insufficient data for {kind} analysis "
            f"(need {required}+ settled predictions, have {available})"
        ),
        "predictions_available": available,
        "min_required": required,
    }


def _favourite_evaluations(records: Iterable) -> List[Evaluation]:
    """Favourite's probability vs whether the favourite won.  Level odds count away as favourite."""
    evaluations = []
    for r in records:
        probs = r.calibrated_probabilities
        favourite = "home" if probs["home"] > probs["away"] else "away"
        evaluations.append(Evaluation(
            max(probs["home"], probs["away"]),
            int(r.outcome == favourite),
        ))
    return evaluations


def _range_label(bucket) -> str:
    return f"{bucket.lower * 100:.0f}-{bucket.upper * 100:.0f}%"


# ---------------------------------------------------------------------------
# Calibration report
# ---------------------------------------------------------------------------

def generate_calibration_report(
    records: Iterable,
    min_predictions: Optional[int] = None,
) -> Dict:
    """
    Bucket the favourite's probability and flag mis-calibrated ranges.

    A bucket with at least 5 predictions is "underconfident" when the
    favourite won more than 10pp above the bucket midpoint and
    "overconfident" when more than 10pp below.

    Returns:
        dict with keys:
            status            "ok" | "insufficient_data"
            summary           one-line text
            predictions_analyzed  int
            overall_error     ECE
            buckets           list of CalibrationBucket
            recommendations   list of str
    """
    required = min_predictions if min_predictions is not None else _MIN_CALIBRATION
    settled = settled_records(records)
    if len(settled) < required:
        result = _insufficient("calibration", len(settled), required)
        result.update({
            "summary": result["message"],
            "buckets": [],
            "overall_error": 0.0,
            "recommendations": ["Collect more predictions before analyzing calibration"],
        })
        return result

    buckets = create_calibration_buckets(_favourite_evaluations(settled))
    overall_error = calculate_ece(buckets)

    recommendations: List[str] = []
    for bucket in buckets:
        if bucket.predictions < _MIN_BUCKET_PREDICTIONS:
            continue
        diff = bucket.actual_win_rate - bucket.expected_win_rate
        if diff > _CONFIDENCE_TOLERANCE:
            verdict = "Underconfident"
        elif diff < -_CONFIDENCE_TOLERANCE:
            verdict = "Overconfident"
        else:
            continue
        recommendations.append(
            f"{verdict} in {_range_label(bucket)} range: winning "
            f"{bucket.actual_win_rate * 100:.1f}% vs expected "
            f"{bucket.expected_win_rate * 100:.1f}%"
        )

    if not recommendations:
        recommendations.append("Calibration looks reasonable - no major adjustments needed")

    return {
        "status": "ok",
        "summary": f"Analyzed {len(settled)} predictions. ECE: {overall_error * 100:.2f}%",
        "predictions_analyzed": len(settled),
        "overall_error": overall_error,
        "buckets": buckets,
        "recommendations": recommendations,
    }


# ---------------------------------------------------------------------------
# Performance report
# ---------------------------------------------------------------------------

def _by_edge_quality(records: List) -> Dict[str, Dict]:
    breakdown: Dict[str, Dict] = {}
    for quality in EDGE_QUALITY_LEVELS:
        matching = [
            r for r in records
            if (r.edge or {}).get("primary_edge", {}).get("quality") == quality
        ]
        if not matching:
            continue
        correct = sum(
            1 for r in matching
            if predicted_outcome(r.calibrated_probabilities) == r.outcome
        )
        breakdown[quality] = {
            "accuracy": correct / len(matching),
            "count": len(matching),
        }
    return breakdown


def generate_performance_report(
    records: Iterable,
    min_predictions: Optional[int] = None,
) -> Dict:
    """
    Model vs market on the home-win event, plus accuracy by edge quality.

    improvement = (market_brier − model_brier) / market_brier × 100, so a
    positive number means the model's Brier score is that many percent
    better than the market's.

    Returns:
        dict with keys:
            status            "ok" | "insufficient_data"
            model_vs_market   verdict text
            brier_score       model home-event Brier
            market_brier_score
            improvement       percent
            by_edge_quality   {quality: {accuracy, count}}
    """
    required = min_predictions if min_predictions is not None else _MIN_PERFORMANCE
    settled = settled_records(records)
    if len(settled) < required:
        result = _insufficient("performance", len(settled), required)
        result.update({
            "model_vs_market": "Insufficient data",
            "brier_score": 0.0,
            "market_brier_score": 0.0,
            "improvement": 0.0,
            "by_edge_quality": {},
        })
        return result

    brier = calculate_brier_score(home_evaluations(settled))
    market_brier = calculate_brier_score(market_evaluations(settled))
    improvement = (market_brier - brier) / market_brier * 100.0 if market_brier > 0 else 0.0

    if improvement > _VERDICT_MARGIN_PCT:
        verdict = f"Model outperforming market by {improvement:.1f}%"
    elif improvement < -_VERDICT_MARGIN_PCT:
        verdict = f"Model underperforming market by {abs(improvement):.1f}%"
    else:
        verdict = "Model performing similarly to market"

    logger.info(
        "Performance over %d predictions: model brier=%.4f market=%.4f (%+.1f%%)",
        len(settled), brier, market_brier, improvement,
    )
    return {
        "status": "ok",
        "model_vs_market": verdict,
        "predictions_analyzed": len(settled),
        "brier_score": brier,
        "market_brier_score": market_brier,
        "improvement": improvement,
        "by_edge_quality": _by_edge_quality(settled),
    }
