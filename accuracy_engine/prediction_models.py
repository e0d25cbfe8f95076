"""
Baseline prediction models - deterministic, explainable, one per sport.

Soccer:      Poisson goal grid with a Dixon-Coles low-score correction
Basketball:  Elo from per-game point differential
Football:    Elo from per-game point differential + fixed NFL tie rate
Hockey:      Conservative Elo (v2).  The v1 Poisson model measured ~19%
             real-world accuracy (NHL parity, OT/shootouts and goaltender
             variance break the independence assumption) and is kept only
             so historical v1 predictions can be re-scored.

Every model takes a ModelInput and an optional SportConfig override and
returns RawProbabilities.  No model raises on thin data: zero-game teams
are league-average and every derived rating is clamped.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

import numpy as np
from scipy.stats import poisson

from accuracy_engine.core.model_inputs import HeadToHead, ModelInput, RawProbabilities
from accuracy_engine.core.smoothing import clamp, form_strength
from accuracy_engine.core.sport_config import (
    SPORT_ID_BASKETBALL,
    SPORT_ID_FOOTBALL,
    SPORT_ID_HOCKEY,
    SPORT_ID_SOCCER,
    SportConfig,
    detect_sport_type,
)
from accuracy_engine.core.team_strength import calculate_team_strength

logger = logging.getLogger(__name__)

ModelFn = Callable[..., RawProbabilities]

# Dixon-Coles low-score correlation
DIXON_COLES_RHO = -0.05

# Expected-goals clamp for the soccer grid
SOCCER_XG_RANGE: Tuple[float, float] = (0.3, 4.0)

ELO_BASE = 1500.0
ELO_DIVISOR = 400.0

# Head-to-head nudges, applied only with enough meetings
H2H_MIN_MEETINGS = 3
H2H_DOMINANCE = 0.6
H2H_XG_BOOST = 1.05
H2H_ELO_BONUS = 25.0

# Form is worth at most +/-50 rating points before form_weight scaling
FORM_ELO_SPAN = 100.0

# Legacy hockey v1 constants
_HOCKEY_V1_HOME_ADVANTAGE = 0.15
_HOCKEY_V1_FORM_WEIGHT = 0.35
_HOCKEY_V1_XG_RANGE: Tuple[float, float] = (1.5, 4.5)
_HOCKEY_V1_OT_HOME_SHARE = 0.52


# ============================================================================
# SHARED HELPERS
# ============================================================================

def _config(config: Optional[SportConfig], sport_id: str) -> SportConfig:
    return config if config is not None else SportConfig.for_sport(sport_id)


def _league_total(input: ModelInput, cfg: SportConfig) -> float:
    # A zero or missing override falls back to the configured constant
    return input.league_average_goals or cfg.league_avg_score


def _h2h_rates(h2h: Optional[HeadToHead]) -> Optional[Tuple[float, float]]:
    """(home win rate, away win rate), or None with fewer than 3 meetings."""
    if h2h is None or h2h.total < H2H_MIN_MEETINGS:
        return None
    return h2h.home_wins / h2h.total, h2h.away_wins / h2h.total


def elo_win_probability(rating_diff: float) -> float:
    """Logistic Elo expectation: P(home) = 1 / (1 + 10^(-diff/400))."""
    return 1.0 / (1.0 + 10.0 ** (-rating_diff / ELO_DIVISOR))


def _form_rating_nudge(form: str, weight: float, has_draw: bool) -> float:
    return (form_strength(form, has_draw) - 0.5) * FORM_ELO_SPAN * weight


def _score_grid(lambda_home: float, lambda_away: float, max_goals: int) -> np.ndarray:
    """Joint P(home=h, away=a) for 0..max_goals, independent Poisson marginals."""
    goals = np.arange(max_goals + 1)
    return np.outer(poisson.pmf(goals, lambda_home), poisson.pmf(goals, lambda_away))


def _split_grid(grid: np.ndarray) -> Tuple[float, float, float]:
    """Sum a score grid into (home win, draw, away win) mass."""
    home = float(np.tril(grid, -1).sum())
    away = float(np.triu(grid, 1).sum())
    draw = float(np.trace(grid))
    return home, draw, away


def dixon_coles_tau(
    x: int, y: int, lambda_home: float, lambda_away: float, rho: float
) -> float:
    """Dixon-Coles correction factor for the (x, y) scoreline, floored at 0."""
    if x == 0 and y == 0:
        tau = 1.0 - lambda_home * lambda_away * rho
    elif x == 0 and y == 1:
        tau = 1.0 + lambda_home * rho
    elif x == 1 and y == 0:
        tau = 1.0 + lambda_away * rho
    elif x == 1 and y == 1:
        tau = 1.0 - rho
    else:
        tau = 1.0
    # cell mass stays non-negative for any rho
    return max(0.0, tau)


# ============================================================================
# SOCCER
# ============================================================================

def soccer_expected_goals(
    input: ModelInput, config: Optional[SportConfig] = None
) -> Tuple[float, float]:
    """
    Expected goals (home, away) for the soccer grid.

    home = attack_h * (2 - defense_a) * avg * (1 + home_advantage)
    away = attack_a * (2 - defense_h) * avg

    then a multiplicative form nudge of form_weight * (form - 0.5), a +5%
    H2H boost to a side that won >= 60% of at least 3 meetings, and a clamp
    to [0.3, 4.0].
    """
    cfg = _config(config, SPORT_ID_SOCCER)
    avg_per_team = _league_total(input, cfg) / 2.0

    home_strength = calculate_team_strength(input.home_stats, avg_per_team)
    away_strength = calculate_team_strength(input.away_stats, avg_per_team)

    lambda_home = home_strength.attack * away_strength.defensive_weakness * avg_per_team
    lambda_away = away_strength.attack * home_strength.defensive_weakness * avg_per_team

    lambda_home *= 1.0 + cfg.home_advantage

    home_form = form_strength(input.home_form, cfg.has_draw)
    away_form = form_strength(input.away_form, cfg.has_draw)
    lambda_home *= 1.0 + cfg.form_weight * (home_form - 0.5)
    lambda_away *= 1.0 + cfg.form_weight * (away_form - 0.5)

    rates = _h2h_rates(input.h2h)
    if rates is not None:
        home_rate, away_rate = rates
        if home_rate >= H2H_DOMINANCE:
            lambda_home *= H2H_XG_BOOST
        elif away_rate >= H2H_DOMINANCE:
            lambda_away *= H2H_XG_BOOST

    lo, hi = SOCCER_XG_RANGE
    return clamp(lambda_home, lo, hi), clamp(lambda_away, lo, hi)


def _soccer_from_grid(grid: np.ndarray, method: str) -> RawProbabilities:
    home, draw, away = _split_grid(grid)
    total = home + draw + away
    return RawProbabilities(
        home=home / total,
        away=away / total,
        draw=draw / total,
        method=method,
    )


def soccer_poisson_model(
    input: ModelInput, config: Optional[SportConfig] = None
) -> RawProbabilities:
    """Independent-Poisson soccer model (fallback to Dixon-Coles)."""
    cfg = _config(config, SPORT_ID_SOCCER)
    lambda_home, lambda_away = soccer_expected_goals(input, cfg)
    logger.debug(
        "soccer poisson %s v %s: xG %.3f - %.3f",
        input.home_team, input.away_team, lambda_home, lambda_away,
    )
    grid = _score_grid(lambda_home, lambda_away, cfg.max_goals)
    return _soccer_from_grid(grid, "poisson")


def soccer_dixon_coles_model(
    input: ModelInput,
    config: Optional[SportConfig] = None,
    rho: float = DIXON_COLES_RHO,
) -> RawProbabilities:
    """
    Poisson grid with the Dixon-Coles correction on 0-0, 1-0, 0-1 and 1-1.

    Independent Poisson marginals underweight low-scoring draws; tau
    rescales those four cells before the grid is renormalised.
    """
    cfg = _config(config, SPORT_ID_SOCCER)
    lambda_home, lambda_away = soccer_expected_goals(input, cfg)
    logger.debug(
        "soccer dixon-coles %s v %s: xG %.3f - %.3f (rho=%.3f)",
        input.home_team, input.away_team, lambda_home, lambda_away, rho,
    )
    grid = _score_grid(lambda_home, lambda_away, cfg.max_goals)
    for h in (0, 1):
        for a in (0, 1):
            grid[h, a] *= dixon_coles_tau(h, a, lambda_home, lambda_away, rho)
    return _soccer_from_grid(grid, "dixon-coles")


# ============================================================================
# BASKETBALL / FOOTBALL (Elo)
# ============================================================================

def elo_ratings(
    input: ModelInput, cfg: SportConfig, apply_h2h: bool = True
) -> Tuple[float, float]:
    """
    Elo-like ratings (home, away) centred at 1500.

    rating = 1500 + per-game differential * elo_scale, plus a form nudge of
    (form - 0.5) * 100 * form_weight, the home bonus, and +25 to the side
    holding a >= 60% H2H record over at least 3 meetings.
    """
    home_elo = ELO_BASE + input.home_stats.per_game_differential() * cfg.elo_scale
    away_elo = ELO_BASE + input.away_stats.per_game_differential() * cfg.elo_scale

    home_elo += _form_rating_nudge(input.home_form, cfg.form_weight, cfg.has_draw)
    away_elo += _form_rating_nudge(input.away_form, cfg.form_weight, cfg.has_draw)

    home_elo += cfg.home_elo_bonus

    rates = _h2h_rates(input.h2h) if apply_h2h else None
    if rates is not None:
        home_rate, _ = rates
        if home_rate >= H2H_DOMINANCE:
            home_elo += H2H_ELO_BONUS
        elif home_rate <= 1.0 - H2H_DOMINANCE:
            away_elo += H2H_ELO_BONUS

    return home_elo, away_elo


def basketball_elo_model(
    input: ModelInput, config: Optional[SportConfig] = None
) -> RawProbabilities:
    """Basketball Elo.  No draw."""
    cfg = _config(config, SPORT_ID_BASKETBALL)
    home_elo, away_elo = elo_ratings(input, cfg)
    p_home = elo_win_probability(home_elo - away_elo)
    logger.debug(
        "basketball elo %s v %s: %.1f vs %.1f -> %.4f",
        input.home_team, input.away_team, home_elo, away_elo, p_home,
    )
    return RawProbabilities(home=p_home, away=1.0 - p_home, method="elo")


def football_elo_model(
    input: ModelInput, config: Optional[SportConfig] = None
) -> RawProbabilities:
    """American football Elo with a fixed tie probability carved out of both sides."""
    cfg = _config(config, SPORT_ID_FOOTBALL)
    home_elo, away_elo = elo_ratings(input, cfg)
    p_home = elo_win_probability(home_elo - away_elo)
    logger.debug(
        "football elo %s v %s: %.1f vs %.1f -> %.4f",
        input.home_team, input.away_team, home_elo, away_elo, p_home,
    )
    tie = cfg.draw_rate
    return RawProbabilities(
        home=p_home * (1.0 - tie),
        away=(1.0 - p_home) * (1.0 - tie),
        draw=tie,
        method="elo",
    )


# ============================================================================
# HOCKEY
# ============================================================================

def hockey_regression_weight(played: int, cfg: SportConfig) -> float:
    """Weight on observed goal differential: capped, and reached only at full_weight_games."""
    if played <= 0:
        return 0.0
    if cfg.full_weight_games <= 0:
        return cfg.max_regression_weight
    return cfg.max_regression_weight * min(played, cfg.full_weight_games) / cfg.full_weight_games


def hockey_elo_conservative_model(
    input: ModelInput, config: Optional[SportConfig] = None
) -> RawProbabilities:
    """
    Conservative hockey Elo (production, v2).

    Goal differential is shrunk hard toward zero (weight <= 0.7, reached at
    40 games), form counts at 20%, home ice is worth 15 rating points, and
    the final home probability is clamped to [0.35, 0.65].  H2H is ignored.
    """
    cfg = _config(config, SPORT_ID_HOCKEY)

    home_diff = input.home_stats.per_game_differential()
    away_diff = input.away_stats.per_game_differential()
    home_diff *= hockey_regression_weight(input.home_stats.played, cfg)
    away_diff *= hockey_regression_weight(input.away_stats.played, cfg)

    home_elo = ELO_BASE + home_diff * cfg.elo_scale
    away_elo = ELO_BASE + away_diff * cfg.elo_scale
    home_elo += _form_rating_nudge(input.home_form, cfg.form_weight, cfg.has_draw)
    away_elo += _form_rating_nudge(input.away_form, cfg.form_weight, cfg.has_draw)
    home_elo += cfg.home_elo_bonus

    p_home = elo_win_probability(home_elo - away_elo)
    if cfg.prob_clamp is not None:
        p_home = clamp(p_home, *cfg.prob_clamp)

    logger.debug(
        "hockey elo %s v %s: %.1f vs %.1f -> %.4f",
        input.home_team, input.away_team, home_elo, away_elo, p_home,
    )
    return RawProbabilities(home=p_home, away=1.0 - p_home, method="elo-conservative")


def hockey_poisson_model(
    input: ModelInput, config: Optional[SportConfig] = None
) -> RawProbabilities:
    """
    Superseded hockey Poisson model (v1), kept for re-scoring old records.

    Regulation goals on a Poisson grid (xG clamped to [1.5, 4.5]); tied
    regulation mass goes to overtime, split 52/48 in the home side's favour.
    """
    cfg = _config(config, SPORT_ID_HOCKEY)
    avg_per_team = _league_total(input, cfg) / 2.0
    # neutral_site() zeroes home_advantage; honour that for the legacy boost
    home_boost = _HOCKEY_V1_HOME_ADVANTAGE if cfg.home_advantage > 0 else 0.0

    home_strength = calculate_team_strength(input.home_stats, avg_per_team)
    away_strength = calculate_team_strength(input.away_stats, avg_per_team)

    lambda_home = home_strength.attack * away_strength.defensive_weakness * avg_per_team
    lambda_away = away_strength.attack * home_strength.defensive_weakness * avg_per_team
    lambda_home *= 1.0 + home_boost

    home_form = form_strength(input.home_form, cfg.has_draw)
    away_form = form_strength(input.away_form, cfg.has_draw)
    lambda_home *= 1.0 + _HOCKEY_V1_FORM_WEIGHT * (home_form - 0.5)
    lambda_away *= 1.0 + _HOCKEY_V1_FORM_WEIGHT * (away_form - 0.5)

    lo, hi = _HOCKEY_V1_XG_RANGE
    lambda_home = clamp(lambda_home, lo, hi)
    lambda_away = clamp(lambda_away, lo, hi)

    home_reg, tied, away_reg = _split_grid(
        _score_grid(lambda_home, lambda_away, cfg.max_goals)
    )
    ot_home_share = _HOCKEY_V1_OT_HOME_SHARE if home_boost > 0 else 0.5
    home = home_reg + tied * ot_home_share
    away = away_reg + tied * (1.0 - ot_home_share)
    total = home + away
    return RawProbabilities(home=home / total, away=away / total, method="poisson-ot")


# ============================================================================
# REGISTRY / DISPATCH
# ============================================================================

MODEL_VERSIONS: Dict[str, ModelFn] = {
    "soccer_v1_poisson": soccer_poisson_model,
    "soccer_v2_dixon_coles": soccer_dixon_coles_model,
    "basketball_v1_elo": basketball_elo_model,
    "football_v1_elo": football_elo_model,
    "hockey_v1_poisson": hockey_poisson_model,
    "hockey_v2_elo_conservative": hockey_elo_conservative_model,
}

PRODUCTION_MODELS: Dict[str, str] = {
    SPORT_ID_SOCCER: "soccer_v2_dixon_coles",
    SPORT_ID_BASKETBALL: "basketball_v1_elo",
    SPORT_ID_FOOTBALL: "football_v1_elo",
    SPORT_ID_HOCKEY: "hockey_v2_elo_conservative",
}


def get_model(version: str) -> ModelFn:
    """Look up a model by version key, e.g. ``hockey_v1_poisson``."""
    try:
        return MODEL_VERSIONS[version]
    except KeyError:
        raise ValueError(
            f"Unknown model version {version!r}; expected one of {sorted(MODEL_VERSIONS)}"
        ) from None


def get_model_for_sport(sport: str) -> ModelFn:
    """
    Production model for a sport.

    Free-form keys ("basketball_nba", "NHL") resolve through
    detect_sport_type; anything unrecognised gets the soccer model.
    """
    version = PRODUCTION_MODELS.get(sport)
    if version is None:
        resolved = detect_sport_type(sport)
        logger.warning("No model registered for sport %r, using %s", sport, resolved)
        version = PRODUCTION_MODELS[resolved]
    return MODEL_VERSIONS[version]


def predict_match(
    input: ModelInput, config: Optional[SportConfig] = None
) -> RawProbabilities:
    """Run the production model for ``input.sport``."""
    model = get_model_for_sport(input.sport)
    probs = model(input, config)
    logger.debug(
        "predict_match %s %s v %s -> home=%.4f away=%.4f draw=%s (%s)",
        input.sport, input.home_team, input.away_team,
        probs.home, probs.away, probs.draw, probs.method,
    )
    return probs
