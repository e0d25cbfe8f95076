"""Tests for core/odds_math.py: conversion and vig removal."""

import pytest

from accuracy_engine.core.odds_math import (
    VIG_METHOD_SHIN,
    american_to_decimal,
    decimal_to_implied,
    implied_probabilities,
    market_margin,
    no_vig_home_probability,
    remove_vig_proportional,
    remove_vig_shin,
)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

def test_american_to_decimal_favourite():
    assert american_to_decimal(-110) == pytest.approx(1.90909, abs=1e-5)


def test_american_to_decimal_underdog():
    assert american_to_decimal(150) == pytest.approx(2.5)


@pytest.mark.parametrize("bad", [0, 50, -99])
def test_american_to_decimal_rejects_small_magnitude(bad):
    with pytest.raises(ValueError):
        american_to_decimal(bad)


def test_decimal_to_implied():
    assert decimal_to_implied(2.0) == pytest.approx(0.5)
    assert decimal_to_implied(4.0) == pytest.approx(0.25)


@pytest.mark.parametrize("bad", [1.0, 0.5, 0.0, -2.0])
def test_decimal_to_implied_rejects_non_payout(bad):
    with pytest.raises(ValueError):
        decimal_to_implied(bad)


def test_market_margin_standard_juice():
    # -110 / -110 -> about 4.76% overround
    d = american_to_decimal(-110)
    assert market_margin([d, d]) == pytest.approx(0.04762, abs=1e-4)


def test_implied_probabilities_keep_order():
    assert implied_probabilities([2.0, 4.0]) == pytest.approx([0.5, 0.25])


# ---------------------------------------------------------------------------
# Proportional
# ---------------------------------------------------------------------------

def test_proportional_even_market():
    assert remove_vig_proportional([1.9, 1.9]) == pytest.approx([0.5, 0.5])


def test_proportional_three_way_sums_to_one():
    probs = remove_vig_proportional([2.0, 3.5, 4.0])
    assert sum(probs) == pytest.approx(1.0)
    assert probs[0] == pytest.approx(0.5 / (0.5 + 1 / 3.5 + 0.25))


# ---------------------------------------------------------------------------
# Shin
# ---------------------------------------------------------------------------

def test_shin_even_market_is_half():
    a, b = remove_vig_shin(1.91, 1.91)
    assert a == pytest.approx(0.5)
    assert b == pytest.approx(0.5)


def test_shin_sums_to_one_and_keeps_favourite():
    a, b = remove_vig_shin(1.5, 2.6)
    assert a + b == pytest.approx(1.0)
    assert 0.5 < a < 1.0
    assert b < a


def test_shin_vig_free_market_is_proportional():
    a, b = remove_vig_shin(1.25, 5.0)  # 0.8 + 0.2 = exactly 1.0
    assert a == pytest.approx(0.8)
    assert b == pytest.approx(0.2)


# ---------------------------------------------------------------------------
# no_vig_home_probability
# ---------------------------------------------------------------------------

def test_no_vig_home_two_way_proportional():
    assert no_vig_home_probability(2.0, 2.0) == pytest.approx(0.5)


def test_no_vig_home_three_way_ignores_shin():
    prop = no_vig_home_probability(2.0, 4.0, 3.5)
    shin = no_vig_home_probability(2.0, 4.0, 3.5, method=VIG_METHOD_SHIN)
    assert prop == pytest.approx(shin)
    assert prop == pytest.approx(0.5 / (0.5 + 0.25 + 1 / 3.5))


def test_no_vig_home_shin_two_way():
    assert no_vig_home_probability(1.5, 2.6, method=VIG_METHOD_SHIN) == pytest.approx(
        remove_vig_shin(1.5, 2.6)[0]
    )


def test_no_vig_home_unknown_method_raises():
    with pytest.raises(ValueError, match="Unknown vig removal method"):
        no_vig_home_probability(2.0, 2.0, method="power")
