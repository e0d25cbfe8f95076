"""Tests for core/team_strength.py."""

import pytest

from accuracy_engine.core.model_inputs import TeamStats
from accuracy_engine.core.team_strength import (
    STRENGTH_MAX,
    STRENGTH_MIN,
    TeamStrength,
    calculate_team_strength,
)

LEAGUE_AVG = 1.25  # soccer, per team


def test_zero_played_is_neutral():
    s = calculate_team_strength(TeamStats(played=0, scored=5, conceded=0), LEAGUE_AVG)
    assert s == TeamStrength(1.0, 1.0, 1.0)


def test_non_positive_league_average_is_neutral():
    s = calculate_team_strength(TeamStats(played=10, scored=20, conceded=10), 0.0)
    assert s == TeamStrength(1.0, 1.0, 1.0)


def test_known_values():
    # raw attack 2.0/1.25 = 1.6, raw defense 1.25/1.0 = 1.25, weight 10/20
    s = calculate_team_strength(TeamStats(played=10, scored=20, conceded=10), LEAGUE_AVG)
    assert s.attack == pytest.approx(1.3)
    assert s.defense == pytest.approx(1.125)
    assert s.overall == pytest.approx((1.3 + 1.125) / 2)


def test_league_average_team_is_neutral():
    s = calculate_team_strength(TeamStats(played=30, scored=37.5, conceded=37.5), LEAGUE_AVG)
    assert s.attack == pytest.approx(1.0)
    assert s.defense == pytest.approx(1.0)


def test_clean_sheet_single_game_is_bounded():
    # one 10-0 win must not produce a runaway rating
    s = calculate_team_strength(TeamStats(played=1, scored=10, conceded=0), LEAGUE_AVG)
    assert STRENGTH_MIN <= s.attack <= STRENGTH_MAX
    assert s.defense == STRENGTH_MAX


def test_huge_sample_clamps_at_ceiling():
    s = calculate_team_strength(TeamStats(played=1000, scored=10000, conceded=100), LEAGUE_AVG)
    assert s.attack == STRENGTH_MAX
    assert s.defense == STRENGTH_MAX


def test_huge_sample_clamps_at_floor():
    s = calculate_team_strength(TeamStats(played=1000, scored=10, conceded=10000), LEAGUE_AVG)
    assert s.attack == STRENGTH_MIN
    assert s.defense == STRENGTH_MIN


def test_defensive_weakness_inverts_defense():
    assert TeamStrength(1.0, 1.5, 1.25).defensive_weakness == pytest.approx(0.5)
    assert TeamStrength().defensive_weakness == pytest.approx(1.0)


def test_more_goals_never_lowers_attack():
    attacks = [
        calculate_team_strength(TeamStats(played=10, scored=g, conceded=12), LEAGUE_AVG).attack
        for g in range(0, 40, 2)
    ]
    assert attacks == sorted(attacks)
