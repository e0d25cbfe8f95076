"""
Closing Line Value (CLV) for logged predictions.

CLV here is a probability difference, not a price difference:

    clv = model home probability − closing no-vig home probability

Positive CLV means the pre-match view anticipated where the market
closed.  The closing market is de-vigged either proportionally (default,
any number of outcomes) or with Shin (1993) for two-outcome markets; a
market with a draw price always uses proportional.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from accuracy_engine.core.odds_math import (
    VIG_METHOD_PROPORTIONAL,
    no_vig_home_probability,
)

logger = logging.getLogger(__name__)

# (label, lower bound inclusive, upper bound exclusive)
CLV_BUCKETS: Tuple[Tuple[str, float, float], ...] = (
    ("<-5%", float("-inf"), -0.05),
    ("-5% to -2%", -0.05, -0.02),
    ("-2% to +2%", -0.02, 0.02),
    ("+2% to +5%", 0.02, 0.05),
    (">+5%", 0.05, float("inf")),
)


@dataclass
class CLVResult:
    """CLV for a single prediction."""

    prediction_id: str
    model_prob: float       # Calibrated home probability at log time
    closing_novig: float    # No-vig home probability at the close
    clv: float              # model_prob - closing_novig (positive = good)

    def is_positive(self) -> bool:
        return self.clv > 0

    def grade(self) -> str:
        """Human-readable CLV grade for display."""
        if self.clv >= 0.03:
            return "STRONG+"
        elif self.clv >= 0.01:
            return "POSITIVE"
        elif self.clv >= -0.01:
            return "NEUTRAL"
        elif self.clv >= -0.03:
            return "NEGATIVE"
        return "STRONG-"


def calculate_prediction_clv(
    record,
    vig_method: str = VIG_METHOD_PROPORTIONAL,
) -> Optional[CLVResult]:
    """CLV for one record, or None when no closing odds were captured."""
    if record.closing_home is None or record.closing_away is None:
        return None

    closing = no_vig_home_probability(
        record.closing_home,
        record.closing_away,
        record.closing_draw,
        method=vig_method,
    )
    model_prob = record.calibrated_probabilities["home"]
    return CLVResult(
        prediction_id=record.id,
        model_prob=model_prob,
        closing_novig=closing,
        clv=model_prob - closing,
    )


def clv_distribution(values: Iterable[float]) -> List[Dict]:
    """Five-bucket histogram of CLV values."""
    values = list(values)
    return [
        {"range": label, "count": sum(1 for v in values if lo <= v < hi)}
        for label, lo, hi in CLV_BUCKETS
    ]


def calculate_clv(
    records: Iterable,
    vig_method: str = VIG_METHOD_PROPORTIONAL,
) -> Dict:
    """
    Mean CLV and its distribution over every record with closing odds.

    Returns ``{"average_clv": 0.0, "predictions": 0, "distribution": []}``
    when no record has closing odds.
    """
    results = [
        r for r in (calculate_prediction_clv(rec, vig_method) for rec in records)
        if r is not None
    ]
    if not results:
        return {"average_clv": 0.0, "predictions": 0, "distribution": []}

    values = [r.clv for r in results]
    average = sum(values) / len(values)
    logger.debug("CLV over %d predictions: mean=%.4f (%s)", len(values), average, vig_method)
    return {
        "average_clv": average,
        "predictions": len(values),
        "distribution": clv_distribution(values),
    }
