#!/usr/bin/env python3
"""
Backtest report for the prediction ledger

Filters the ledger, then prints backtest metrics, the calibration table,
CLV summary, and the calibration / performance reports.

Usage:
    python scripts/backtest_report.py --sport soccer --league "premier" --since 2025-08-01
"""

import sys
import os
from dataclasses import asdict
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

import logging

import pandas as pd

from accuracy_engine.core.odds_math import VIG_METHOD_PROPORTIONAL, VIG_METHOD_SHIN
from accuracy_engine.core.sport_config import ALL_SPORT_IDS
from accuracy_engine.models import SessionLocal
from accuracy_engine.schemas import DATA_QUALITY_ORDER
from accuracy_engine.services.backtest import calculate_backtest_metrics
from accuracy_engine.services.clv import calculate_clv
from accuracy_engine.services.ledger import BacktestFilter, PredictionLedger
from accuracy_engine.services.reports import (
    generate_calibration_report,
    generate_performance_report,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _parse_date(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _section(title: str):
    print()
    print(title)
    print("-" * len(title))


def run_report(args) -> int:
    flt = BacktestFilter(
        sport=args.sport,
        league=args.league,
        start_date=args.since,
        end_date=args.until,
        min_data_quality=args.min_quality,
        settled_only=True,
    )

    db = SessionLocal()
    try:
        records = PredictionLedger(db).get_filtered_predictions(flt)
    finally:
        db.close()

    logger.info("Loaded %d settled predictions (%s)", len(records), flt)
    if not records:
        print("No settled predictions match the filter.")
        return 1

    metrics = calculate_backtest_metrics(records, num_buckets=args.buckets)

    _section("Backtest metrics")
    print(f"Period:            {metrics.period_start} -> {metrics.period_end}")
    print(f"Predictions:       {metrics.total_predictions}")
    print(f"Brier score:       {metrics.brier_score:.4f}")
    print(f"Log loss:          {metrics.log_loss:.4f}")
    print(f"ECE:               {metrics.calibration_error:.4f}")
    print(f"Brier vs market:   {metrics.brier_score_vs_market:+.4f}  (negative = model better)")

    _section("Calibration buckets")
    buckets = pd.DataFrame([asdict(b) for b in metrics.calibration_buckets])
    print(buckets[buckets["predictions"] > 0].to_string(index=False, float_format="%.3f"))

    _section("Accuracy at threshold")
    print(pd.DataFrame([asdict(t) for t in metrics.accuracy_at_threshold])
          .to_string(index=False, float_format="%.3f"))

    if metrics.by_league:
        _section("By league")
        by_league = pd.DataFrame.from_dict(metrics.by_league, orient="index")
        print(by_league.sort_values("predictions", ascending=False)
              .to_string(float_format="%.4f"))

    _section(f"CLV ({args.vig_method})")
    clv = calculate_clv(records, vig_method=args.vig_method)
    print(f"Average CLV: {clv['average_clv']:+.4f} over {clv['predictions']} predictions")
    if clv["distribution"]:
        print(pd.DataFrame(clv["distribution"]).to_string(index=False))

    _section("Calibration report")
    calibration = generate_calibration_report(records)
    print(calibration["summary"])
    for line in calibration["recommendations"]:
        print(f"  - {line}")

    _section("Performance report")
    performance = generate_performance_report(records)
    print(performance["model_vs_market"])
    if performance["by_edge_quality"]:
        print(pd.DataFrame.from_dict(performance["by_edge_quality"], orient="index")
              .to_string(float_format="%.3f"))

    return 0


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Backtest the prediction ledger")
    parser.add_argument("--sport", choices=ALL_SPORT_IDS, help="Only this sport")
    parser.add_argument("--league", help="Case-insensitive league substring")
    parser.add_argument("--since", type=_parse_date, help="Earliest kickoff (ISO date)")
    parser.add_argument("--until", type=_parse_date, help="Latest kickoff (ISO date)")
    parser.add_argument("--min-quality", choices=DATA_QUALITY_ORDER, help="Minimum data quality tier")
    parser.add_argument("--buckets", type=int, default=10, help="Calibration bucket count")
    parser.add_argument(
        "--vig-method",
        choices=(VIG_METHOD_PROPORTIONAL, VIG_METHOD_SHIN),
        default=VIG_METHOD_PROPORTIONAL,
        help="How to de-vig closing odds for CLV",
    )

    sys.exit(run_report(parser.parse_args()))
