"""Data-transfer objects flowing into and out of the prediction models.

External data-aggregation code builds a :class:`ModelInput` from team
statistics, form history and head-to-head feeds.  Models return a
:class:`RawProbabilities`, which an external calibration/edge layer turns
into calibrated probabilities before the ledger stores the snapshot.

Inputs are slotted dataclasses with neutral defaults; callers set only the
fields they have data for.  :class:`RawProbabilities` is frozen.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, Optional


@dataclass(slots=True)
class TeamStats:
    """Cumulative season figures for one side.

    Attributes:
        played: Games played (>= 0).  ``0`` means "no data" and every model
            treats the team as league-average.
        scored: Goals/points scored across ``played`` games.
        conceded: Goals/points conceded across ``played`` games.
        wins, draws, losses: Season record.  Informational; no model reads
            them directly.
    """

    played: int = 0
    scored: float = 0.0
    conceded: float = 0.0
    wins: int = 0
    draws: int = 0
    losses: int = 0

    def has_scoring_data(self) -> bool:
        """True when the team has at least one game and one recorded score."""
        return self.played > 0 and self.scored > 0

    def per_game_differential(self) -> float:
        """Average (scored - conceded) per game, ``0.0`` with no games."""
        if self.played <= 0:
            return 0.0
        return (self.scored - self.conceded) / self.played


@dataclass(slots=True)
class HeadToHead:
    """Head-to-head tally from the home side's perspective."""

    home_wins: int = 0
    away_wins: int = 0
    draws: int = 0
    total: int = 0


@dataclass(slots=True)
class ModelInput:
    """Per-match statistical snapshot fed to a model.

    Attributes:
        sport: One of ``soccer``, ``basketball``, ``football``, ``hockey``.
        home_stats, away_stats: Cumulative season figures.
        home_form, away_form: Recent results, most recent first, using
            ``W``/``D``/``L``.  Typically 0-5 characters.
        h2h: Optional head-to-head tally; ignored with fewer than 3 meetings.
        league_average_goals: League scoring baseline (combined, both
            teams).  Falls back to the sport's configured constant.
        home_team, away_team, league: Identifiers for logging only.
    """

    sport: str
    home_stats: TeamStats = field(default_factory=TeamStats)
    away_stats: TeamStats = field(default_factory=TeamStats)
    home_form: str = ""
    away_form: str = ""
    h2h: Optional[HeadToHead] = None
    league_average_goals: Optional[float] = None
    home_team: str = ""
    away_team: str = ""
    league: str = ""


@dataclass(frozen=True, slots=True)
class RawProbabilities:
    """Uncalibrated model output.

    ``home + away + (draw or 0)`` sums to 1 within floating-point tolerance.
    ``draw`` is ``None`` for sports that always produce a winner.
    """

    home: float
    away: float
    draw: Optional[float] = None
    method: str = ""

    def total(self) -> float:
        return self.home + self.away + (self.draw or 0.0)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class MatchOdds:
    """Decimal (European) market odds for the expected-score fallback."""

    home: float
    away: float
    draw: Optional[float] = None
