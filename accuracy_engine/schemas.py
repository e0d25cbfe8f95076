"""
Pydantic schemas for the snapshot payloads stored by the prediction ledger.

Calibrated probabilities, market probabilities, edge and data-quality
assessments are produced by an external calibration/edge layer.  The
ledger accepts them as already-computed inputs and validates them here
before they are frozen into a PredictionLog row.  Invalid payloads raise
``pydantic.ValidationError``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

Probability = float
QualityLevel = Literal["INSUFFICIENT", "LOW", "MEDIUM", "HIGH"]
EdgeQuality = Literal["HIGH", "MEDIUM", "LOW", "SUPPRESSED"]

# Lowest to highest; used by the backtest filter's minimum-quality option
DATA_QUALITY_ORDER: Tuple[str, ...] = ("INSUFFICIENT", "LOW", "MEDIUM", "HIGH")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Probabilities
# ---------------------------------------------------------------------------

class OutcomeProbabilities(BaseModel):
    """Home/away/(draw) triple, each in [0, 1]."""

    home: Probability = Field(..., ge=0.0, le=1.0)
    away: Probability = Field(..., ge=0.0, le=1.0)
    draw: Optional[Probability] = Field(None, ge=0.0, le=1.0)


class RawProbabilitiesIn(OutcomeProbabilities):
    """Model output as stored in the ledger snapshot."""

    method: str = Field(..., min_length=1, description='e.g. "dixon-coles", "elo"')


class ConfidenceInterval(BaseModel):
    home: Tuple[Probability, Probability]
    away: Tuple[Probability, Probability]
    draw: Optional[Tuple[Probability, Probability]] = None


class CalibratedProbabilities(OutcomeProbabilities):
    """Probabilities after the external calibration layer."""

    calibration_method: Literal["platt", "isotonic", "none"] = "none"
    confidence_interval: Optional[ConfidenceInterval] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "home": 0.52,
                "away": 0.23,
                "draw": 0.25,
                "calibration_method": "isotonic",
            }
        }
    }


class DecimalOdds(BaseModel):
    home: float = Field(..., gt=1.0)
    away: float = Field(..., gt=1.0)
    draw: Optional[float] = Field(None, gt=1.0)


class MarketProbabilities(BaseModel):
    """Bookmaker consensus, raw and de-vigged."""

    implied_probabilities_raw: OutcomeProbabilities
    implied_probabilities_no_vig: OutcomeProbabilities
    market_margin: float = Field(..., ge=0.0, description="0.05 = 5% overround")
    bookmaker_count: int = Field(..., ge=0)
    consensus_odds: Optional[DecimalOdds] = None


# ---------------------------------------------------------------------------
# Edge / quality
# ---------------------------------------------------------------------------

class PrimaryEdge(BaseModel):
    outcome: Literal["home", "away", "draw", "none"]
    value: float
    quality: EdgeQuality


class EdgeResult(BaseModel):
    """Model minus market, per outcome, with the strongest edge picked out."""

    home: float
    away: float
    draw: Optional[float] = None
    primary_edge: PrimaryEdge
    reasons: List[str] = Field(default_factory=list)


class DataQuality(BaseModel):
    score: float = Field(..., ge=0.0, le=100.0)
    level: QualityLevel
    issues: List[str] = Field(default_factory=list)

    has_minimum_games: bool = False
    has_recent_form: bool = False
    has_h2h_data: bool = False
    has_multiple_bookmakers: bool = False
    has_complete_stats: bool = False


class VolatilityMetrics(BaseModel):
    odds_volatility: float = Field(0.0, ge=0.0)
    form_volatility: float = Field(0.0, ge=0.0)
    is_volatile: bool = False
    level: Literal["LOW", "MEDIUM", "HIGH", "EXTREME"] = "LOW"


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------

class MatchScore(BaseModel):
    """Final score passed to settle_prediction."""

    home_score: int = Field(..., ge=0)
    away_score: int = Field(..., ge=0)


class ClosingOdds(DecimalOdds):
    """Closing decimal odds captured at kickoff."""

    captured_at: datetime = Field(default_factory=_utcnow)
