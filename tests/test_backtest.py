"""Tests for services/backtest.py: scoring rules, buckets, aggregate metrics."""

import math
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from accuracy_engine.services.backtest import (
    BacktestMetrics,
    Evaluation,
    calculate_accuracy_at_threshold,
    calculate_backtest_metrics,
    calculate_brier_score,
    calculate_ece,
    calculate_log_loss,
    create_calibration_buckets,
    predicted_outcome,
)


def _record(home, away, draw=None, outcome="home", market_home=0.5,
            league="EPL", kickoff=datetime(2024, 1, 6, 15, 0)):
    r = MagicMock()
    r.calibrated_probabilities = {"home": home, "away": away, "draw": draw}
    r.market_probabilities = {
        "implied_probabilities_no_vig": {"home": market_home, "away": 1 - market_home},
    }
    r.outcome = outcome
    r.league = league
    r.kickoff = kickoff
    return r


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------

def test_brier_empty_is_zero():
    assert calculate_brier_score([]) == 0.0


def test_brier_coin_flip():
    evals = [Evaluation(0.5, 1), Evaluation(0.5, 0)] * 5
    assert calculate_brier_score(evals) == pytest.approx(0.25)


def test_brier_perfect_forecaster():
    evals = [Evaluation(1.0, 1), Evaluation(0.0, 0)]
    assert calculate_brier_score(evals) == pytest.approx(0.0)


def test_log_loss_empty_is_zero():
    assert calculate_log_loss([]) == 0.0


def test_log_loss_coin_flip_is_ln2():
    evals = [Evaluation(0.5, 1), Evaluation(0.5, 0)]
    assert calculate_log_loss(evals) == pytest.approx(math.log(2))


def test_log_loss_perfect_is_near_zero():
    evals = [Evaluation(1.0, 1), Evaluation(0.0, 0)]
    assert calculate_log_loss(evals) == pytest.approx(0.0, abs=1e-12)


def test_log_loss_confident_miss_is_finite():
    loss = calculate_log_loss([Evaluation(1.0, 0)])
    assert math.isfinite(loss)
    assert loss == pytest.approx(-math.log(1e-15), rel=1e-3)


# ---------------------------------------------------------------------------
# Calibration buckets / ECE
# ---------------------------------------------------------------------------

def test_buckets_cover_unit_interval():
    buckets = create_calibration_buckets([], num_buckets=10)
    assert len(buckets) == 10
    assert buckets[0].lower == 0.0
    assert buckets[-1].upper == pytest.approx(1.0)
    assert all(b.predictions == 0 and b.actual_win_rate == 0.0 for b in buckets)


def test_bucket_placement():
    evals = [
        Evaluation(0.0, 0),
        Evaluation(0.05, 0),
        Evaluation(0.15, 1),
        Evaluation(0.95, 1),
        Evaluation(1.0, 1),
    ]
    buckets = create_calibration_buckets(evals, num_buckets=10)
    assert buckets[0].predictions == 2
    assert buckets[1].predictions == 1
    assert buckets[9].predictions == 2
    assert buckets[9].wins == 2
    assert sum(b.predictions for b in buckets) == len(evals)


def test_bucket_midpoint_and_error():
    evals = [Evaluation(0.75, 1)] * 8 + [Evaluation(0.75, 0)] * 2
    bucket = create_calibration_buckets(evals)[7]
    assert bucket.range == pytest.approx((0.7, 0.8))
    assert bucket.expected_win_rate == pytest.approx(0.75)
    assert bucket.actual_win_rate == pytest.approx(0.8)
    assert bucket.calibration_error == pytest.approx(0.05)


def test_ece_weighted_by_predictions():
    evals = [Evaluation(0.75, 1)] * 8 + [Evaluation(0.75, 0)] * 2
    assert calculate_ece(create_calibration_buckets(evals)) == pytest.approx(0.05)


def test_ece_empty_is_zero():
    assert calculate_ece(create_calibration_buckets([])) == 0.0


# ---------------------------------------------------------------------------
# Accuracy at threshold
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("probs,expected", [
    ({"home": 0.5, "away": 0.3, "draw": 0.2}, "home"),
    ({"home": 0.2, "away": 0.5, "draw": 0.3}, "away"),
    ({"home": 0.3, "away": 0.2, "draw": 0.5}, "draw"),
    ({"home": 0.4, "away": 0.4, "draw": 0.2}, "home"),
    ({"home": 0.2, "away": 0.4, "draw": 0.4}, "away"),
    ({"home": 0.6, "away": 0.4, "draw": None}, "home"),
])
def test_predicted_outcome(probs, expected):
    assert predicted_outcome(probs) == expected


def test_accuracy_at_threshold_tradeoff():
    records = [
        _record(0.60, 0.30, 0.10, outcome="home"),
        _record(0.55, 0.25, 0.20, outcome="draw"),
        _record(0.40, 0.35, 0.25, outcome="home"),
    ]
    results = {t.threshold: t for t in calculate_accuracy_at_threshold(records)}

    assert results[0.50].accuracy == pytest.approx(0.5)
    assert results[0.50].coverage == pytest.approx(2 / 3)
    assert results[0.60].accuracy == pytest.approx(1.0)
    assert results[0.60].coverage == pytest.approx(1 / 3)
    assert results[0.75].accuracy == 0.0
    assert results[0.75].coverage == 0.0


def test_accuracy_at_threshold_empty():
    results = calculate_accuracy_at_threshold([])
    assert [t.threshold for t in results] == [0.50, 0.55, 0.60, 0.65, 0.70, 0.75]
    assert all(t.accuracy == 0.0 and t.coverage == 0.0 for t in results)


# ---------------------------------------------------------------------------
# calculate_backtest_metrics
# ---------------------------------------------------------------------------

def test_metrics_empty_ledger():
    metrics = calculate_backtest_metrics([])
    assert metrics == BacktestMetrics()
    assert metrics.total_predictions == 0
    assert metrics.brier_score == 0.0
    assert metrics.calibration_buckets == []


def test_metrics_ignore_unsettled():
    metrics = calculate_backtest_metrics([_record(0.6, 0.4, outcome=None)])
    assert metrics.total_predictions == 0


def test_metrics_known_values():
    records = [
        _record(0.8, 0.1, 0.1, outcome="home", market_home=0.6,
                league="EPL", kickoff=datetime(2024, 1, 6)),
        _record(0.3, 0.5, 0.2, outcome="away", market_home=0.4,
                league="La Liga", kickoff=datetime(2024, 1, 13)),
        _record(0.5, 0.3, 0.2, outcome=None, kickoff=datetime(2024, 2, 1)),
    ]
    metrics = calculate_backtest_metrics(records)

    # pooled events: (0.8,1) (0.3,0) (0.1,0) (0.5,1)
    assert metrics.total_predictions == 2
    assert metrics.brier_score == pytest.approx((0.04 + 0.09 + 0.01 + 0.25) / 4)
    # home only: model 0.065, market 0.16
    assert metrics.brier_score_vs_market == pytest.approx(-0.095)
    assert len(metrics.calibration_buckets) == 10
    assert sum(b.predictions for b in metrics.calibration_buckets) == 4
    assert metrics.period_start == datetime(2024, 1, 6)
    assert metrics.period_end == datetime(2024, 1, 13)
    assert metrics.by_league["EPL"]["predictions"] == 1
    assert metrics.by_league["EPL"]["brier_score"] == pytest.approx((0.04 + 0.01) / 2)
    assert metrics.by_league["La Liga"]["brier_score"] == pytest.approx((0.09 + 0.25) / 2)


def test_metrics_custom_bucket_count():
    metrics = calculate_backtest_metrics([_record(0.6, 0.4)], num_buckets=5)
    assert len(metrics.calibration_buckets) == 5


def test_metrics_to_dict():
    as_dict = calculate_backtest_metrics([_record(0.6, 0.4)]).to_dict()
    assert as_dict["total_predictions"] == 1
    assert isinstance(as_dict["calibration_buckets"][0], dict)


def test_market_comparison_is_home_side_only():
    records = [
        _record(0.8, 0.1, 0.1, outcome="home", market_home=0.6),
        _record(0.3, 0.5, 0.2, outcome="away", market_home=0.4),
    ]
    metrics = calculate_backtest_metrics(records)
    market_brier = (0.16 + 0.16) / 2
    assert metrics.brier_score - market_brier == pytest.approx(-0.0625)
    assert metrics.brier_score_vs_market == pytest.approx(-0.095)
