"""Team strength from cumulative scored/conceded totals.

Attack and defense are expressed as multipliers on the league-average
per-team scoring rate (1.0 = league average):

    raw attack  = (scored / played) / league_avg
    raw defense = league_avg / (conceded / played)

Both are regressed toward 1.0 with ``played`` as the sample size
(``k = 10``) and then clamped to ``[0.5, 2.0]`` so a freak early-season
result (one game, nothing conceded) cannot produce a runaway rating.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final

from accuracy_engine.core.model_inputs import TeamStats
from accuracy_engine.core.smoothing import STRENGTH_REGRESSION_K, clamp, regress

STRENGTH_MIN: Final[float] = 0.5
STRENGTH_MAX: Final[float] = 2.0
NEUTRAL_STRENGTH: Final[float] = 1.0


@dataclass(frozen=True, slots=True)
class TeamStrength:
    """Relative team ratings, each in ``[0.5, 2.0]``."""

    attack: float = NEUTRAL_STRENGTH
    defense: float = NEUTRAL_STRENGTH
    overall: float = NEUTRAL_STRENGTH

    @property
    def defensive_weakness(self) -> float:
        """How much this side concedes relative to average (``2 − defense``)."""
        return 2.0 - self.defense


def calculate_team_strength(
    stats: TeamStats,
    league_avg_per_team: float,
    k: float = STRENGTH_REGRESSION_K,
) -> TeamStrength:
    """Convert season totals into regressed, clamped attack/defense ratings.

    Args:
        stats: The team's cumulative figures.
        league_avg_per_team: League-average score for one side per game.
        k: Regression constant.

    Returns:
        Neutral ``TeamStrength(1, 1, 1)`` when ``played == 0`` or the
        league average is not positive.
    """
    if stats.played <= 0 or league_avg_per_team <= 0:
        return TeamStrength()

    avg_scored = stats.scored / stats.played
    avg_conceded = stats.conceded / stats.played

    raw_attack = avg_scored / league_avg_per_team
    # A clean-sheet record has no finite ratio; the clamp below bounds it.
    if avg_conceded > 0:
        raw_defense = league_avg_per_team / avg_conceded
    else:
        raw_defense = math.inf

    attack = clamp(
        regress(raw_attack, NEUTRAL_STRENGTH, stats.played, k),
        STRENGTH_MIN, STRENGTH_MAX,
    )
    defense = clamp(
        regress(raw_defense, NEUTRAL_STRENGTH, stats.played, k),
        STRENGTH_MIN, STRENGTH_MAX,
    )

    return TeamStrength(
        attack=attack,
        defense=defense,
        overall=(attack + defense) / 2.0,
    )
