"""Tests for services/reports.py: calibration and performance reports."""

from unittest.mock import MagicMock

import pytest

from accuracy_engine.services.reports import (
    generate_calibration_report,
    generate_performance_report,
)


def _record(home, away, outcome="home", market_home=0.5, edge_quality="MEDIUM"):
    r = MagicMock()
    r.calibrated_probabilities = {"home": home, "away": away, "draw": 1 - home - away}
    r.market_probabilities = {
        "implied_probabilities_no_vig": {"home": market_home, "away": 1 - market_home},
    }
    r.edge = {"primary_edge": {"outcome": "home", "value": 0.02, "quality": edge_quality}}
    r.outcome = outcome
    r.league = "EPL"
    return r


def _batch(n, home, away, wins, **kwargs):
    """n records; the first ``wins`` end in a home win, the rest in an away win."""
    return [
        _record(home, away, "home" if i < wins else "away", **kwargs)
        for i in range(n)
    ]


# ---------------------------------------------------------------------------
# Calibration report
# ---------------------------------------------------------------------------

def test_calibration_insufficient_data():
    report = generate_calibration_report(_batch(19, 0.65, 0.2, 13))
    assert report["status"] == "insufficient_data"
    assert report["predictions_available"] == 19
    assert report["min_required"] == 20
    assert report["buckets"] == []
    assert report["overall_error"] == 0.0
    assert report["recommendations"]


def test_calibration_counts_settled_only():
    records = _batch(19, 0.65, 0.2, 13) + _batch(5, 0.65, 0.2, 0)
    for r in records[19:]:
        r.outcome = None
    assert generate_calibration_report(records)["status"] == "insufficient_data"


def test_calibration_custom_minimum():
    report = generate_calibration_report(_batch(5, 0.65, 0.2, 3), min_predictions=5)
    assert report["status"] == "ok"


def test_calibration_reasonable():
    report = generate_calibration_report(_batch(20, 0.65, 0.2, 13))
    assert report["status"] == "ok"
    assert report["predictions_analyzed"] == 20
    assert report["overall_error"] == pytest.approx(0.0, abs=1e-9)
    assert report["summary"].startswith("Analyzed 20 predictions. ECE:")
    assert report["recommendations"] == [
        "Calibration looks reasonable - no major adjustments needed"
    ]


def test_calibration_underconfident():
    report = generate_calibration_report(_batch(20, 0.75, 0.1, 20))
    assert report["status"] == "ok"
    assert len(report["recommendations"]) == 1
    assert report["recommendations"][0].startswith("Underconfident in 70-80% range")
    assert report["overall_error"] == pytest.approx(0.25)


def test_calibration_overconfident():
    report = generate_calibration_report(_batch(20, 0.85, 0.05, 10))
    assert report["recommendations"][0].startswith("Overconfident in 80-90% range")


def test_calibration_small_buckets_not_flagged():
    # 16 well-calibrated favourites plus 4 badly missed ones in another bucket
    records = _batch(16, 0.65, 0.2, 10) + [_record(0.92, 0.03, "away") for _ in range(4)]
    report = generate_calibration_report(records)
    assert report["recommendations"] == [
        "Calibration looks reasonable - no major adjustments needed"
    ]


def test_calibration_uses_favourite_side():
    # away favourites that always win: 0.75 bucket, 100% actual
    report = generate_calibration_report(
        [_record(0.1, 0.75, "away") for _ in range(20)]
    )
    assert report["recommendations"][0].startswith("Underconfident in 70-80% range")


# ---------------------------------------------------------------------------
# Performance report
# ---------------------------------------------------------------------------

def test_performance_insufficient_data():
    report = generate_performance_report(_batch(9, 0.8, 0.1, 9))
    assert report["status"] == "insufficient_data"
    assert report["min_required"] == 10
    assert report["model_vs_market"] == "Insufficient data"


def test_performance_outperforming():
    report = generate_performance_report(_batch(10, 0.8, 0.1, 10, market_home=0.6))
    assert report["status"] == "ok"
    assert report["brier_score"] == pytest.approx(0.04)
    assert report["market_brier_score"] == pytest.approx(0.16)
    assert report["improvement"] == pytest.approx(75.0)
    assert report["model_vs_market"] == "Model outperforming market by 75.0%"


def test_performance_underperforming():
    report = generate_performance_report(_batch(10, 0.6, 0.3, 10, market_home=0.8))
    assert report["improvement"] == pytest.approx(-300.0)
    assert report["model_vs_market"] == "Model underperforming market by 300.0%"


def test_performance_similar():
    report = generate_performance_report(_batch(10, 0.7, 0.2, 10, market_home=0.7))
    assert report["improvement"] == pytest.approx(0.0)
    assert report["model_vs_market"] == "Model performing similarly to market"


def test_performance_perfect_market_gives_zero_improvement():
    report = generate_performance_report(_batch(10, 0.7, 0.2, 10, market_home=1.0))
    assert report["market_brier_score"] == 0.0
    assert report["improvement"] == 0.0


def test_performance_by_edge_quality():
    records = (
        _batch(6, 0.8, 0.1, 6, edge_quality="HIGH")
        + _batch(4, 0.6, 0.3, 2, edge_quality="LOW")
    )
    breakdown = generate_performance_report(records)["by_edge_quality"]
    assert breakdown["HIGH"] == {"accuracy": pytest.approx(1.0), "count": 6}
    assert breakdown["LOW"] == {"accuracy": pytest.approx(0.5), "count": 4}
    assert "MEDIUM" not in breakdown
