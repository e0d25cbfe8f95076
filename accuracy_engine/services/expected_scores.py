"""
Expected scoreline for display.

Not used by any probability model.  Three paths:

* Soccer / hockey: multiplicative expected goals from attack strength,
  the opponent's defensive weakness and the home-advantage multiplier.
* Basketball / football: additive per-game averages plus half the home
  edge each way, clamped to the sport's realistic score range.
* Soccer with no usable stats for either side but market odds supplied:
  expected goals implied by the de-vigged win probabilities.  Real stats
  always win over the odds path.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from accuracy_engine.core.model_inputs import MatchOdds, ModelInput, TeamStats
from accuracy_engine.core.odds_math import remove_vig_proportional
from accuracy_engine.core.smoothing import clamp
from accuracy_engine.core.sport_config import SPORT_ID_SOCCER, SportConfig, detect_sport_type
from accuracy_engine.core.team_strength import calculate_team_strength

logger = logging.getLogger(__name__)

# Odds-implied soccer goals: avg_total * (BASE + SLOPE * p_win)
ODDS_GOALS_BASE = 0.3
ODDS_GOALS_SLOPE = 0.6
ODDS_HOME_BOOST = 1.1
ODDS_HOME_RANGE = (0.5, 3.5)
ODDS_AWAY_RANGE = (0.3, 2.5)

METHOD_STATS = "stats"
METHOD_ODDS = "odds_implied"


@dataclass(frozen=True)
class ExpectedScore:
    home: float
    away: float
    method: str = METHOD_STATS


def _per_game(total: float, played: int, fallback: float) -> float:
    return total / played if played > 0 else fallback


def _multiplicative(input: ModelInput, cfg: SportConfig) -> ExpectedScore:
    avg_per_team = (input.league_average_goals or cfg.league_avg_score) / 2.0
    home_strength = calculate_team_strength(input.home_stats, avg_per_team)
    away_strength = calculate_team_strength(input.away_stats, avg_per_team)

    home = home_strength.attack * away_strength.defensive_weakness * avg_per_team
    away = away_strength.attack * home_strength.defensive_weakness * avg_per_team
    home *= 1.0 + cfg.home_advantage
    return ExpectedScore(home=round(home, 1), away=round(away, 1))


def _additive(input: ModelInput, cfg: SportConfig) -> ExpectedScore:
    avg_per_team = (input.league_average_goals or cfg.league_avg_score) / 2.0
    h: TeamStats = input.home_stats
    a: TeamStats = input.away_stats

    home_for = _per_game(h.scored, h.played, avg_per_team)
    home_against = _per_game(h.conceded, h.played, avg_per_team)
    away_for = _per_game(a.scored, a.played, avg_per_team)
    away_against = _per_game(a.conceded, a.played, avg_per_team)

    home = (home_for + away_against) / 2.0 + cfg.home_advantage / 2.0
    away = (away_for + home_against) / 2.0 - cfg.home_advantage / 2.0
    if cfg.score_range is not None:
        home = clamp(home, *cfg.score_range)
        away = clamp(away, *cfg.score_range)
    return ExpectedScore(home=round(home, 1), away=round(away, 1))


def _odds_implied(input: ModelInput, odds: MatchOdds, cfg: SportConfig) -> ExpectedScore:
    avg_total = input.league_average_goals or cfg.league_avg_score
    market = [odds.home, odds.away] + ([odds.draw] if odds.draw else [])
    p_home, p_away = remove_vig_proportional(market)[:2]

    home = avg_total * (ODDS_GOALS_BASE + ODDS_GOALS_SLOPE * p_home) * ODDS_HOME_BOOST
    away = avg_total * (ODDS_GOALS_BASE + ODDS_GOALS_SLOPE * p_away)
    return ExpectedScore(
        home=round(clamp(home, *ODDS_HOME_RANGE), 1),
        away=round(clamp(away, *ODDS_AWAY_RANGE), 1),
        method=METHOD_ODDS,
    )


def get_expected_scores(
    input: ModelInput,
    odds: Optional[MatchOdds] = None,
    config: Optional[SportConfig] = None,
) -> ExpectedScore:
    """
    Expected (home, away) score for display, rounded to one decimal.

    The odds-implied path is taken only for soccer, only when odds are
    given, and only when neither side has scoring data (played > 0 and
    scored > 0).
    """
    if config is not None:
        cfg = config
    else:
        cfg = SportConfig.for_sport(detect_sport_type(input.sport))

    if cfg.sport_id == SPORT_ID_SOCCER and odds is not None:
        if not input.home_stats.has_scoring_data() and not input.away_stats.has_scoring_data():
            result = _odds_implied(input, odds, cfg)
            logger.debug(
                "Expected score for %s v %s from odds: %.1f - %.1f",
                input.home_team, input.away_team, result.home, result.away,
            )
            return result

    if cfg.uses_elo() and cfg.score_range is not None:
        return _additive(input, cfg)
    return _multiplicative(input, cfg)
