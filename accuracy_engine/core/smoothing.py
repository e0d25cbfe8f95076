"""Regression to the mean and recent-form strength.

Every function here is **pure**: no I/O, no logging, no side effects.

Small samples lie.  A team that won its only game 4-0 is not twice as good
as the league, and a five-game win streak says less than a season of
results.  :func:`regress` shrinks an observed statistic toward a prior mean
in proportion to how little data backs it::

    weight    = n / (n + k)
    regressed = mean + weight · (observed − mean)

``k`` is the sample size at which observed data and prior get equal weight.
Form strings use ``k = 3`` (streak-prone, noisy); season attack/defense
ratios use ``k = 10`` (a more stable signal).
"""

from __future__ import annotations

from typing import Final, Sequence

#: Shrinkage constant for recent form strings.
FORM_REGRESSION_K: Final[float] = 3.0

#: Shrinkage constant for season attack/defense ratios.
STRENGTH_REGRESSION_K: Final[float] = 10.0

#: Neutral form strength (a .500 team).
NEUTRAL_FORM: Final[float] = 0.5

#: Recency weights for the last five results, most recent first.
FORM_WEIGHTS: Final[Sequence[float]] = (1.5, 1.3, 1.1, 1.0, 0.9)

#: Points per result in sports with draws (W=3, D=1, L=0).
_WIN_POINTS_WITH_DRAW: Final[int] = 3


def clamp(value: float, lo: float, hi: float) -> float:
    """Bound ``value`` to ``[lo, hi]``."""
    return max(lo, min(hi, value))


def regress(observed: float, mean: float, sample_size: float, k: float) -> float:
    """Shrink ``observed`` toward ``mean`` by sample size.

    Args:
        observed: The raw statistic.
        mean: Prior / population mean to regress toward.
        sample_size: Number of observations behind ``observed``.
        k: Shrinkage constant (> 0).  Larger ``k`` pulls harder.

    Returns:
        ``mean`` when ``sample_size == 0``; approaches ``observed`` as
        ``sample_size`` grows.

    Examples::

        regress(2.0, 1.0, 0, 10)    → 1.0
        regress(2.0, 1.0, 10, 10)   → 1.5
        regress(2.0, 1.0, 1e9, 10)  → ~2.0
    """
    denom = sample_size + k
    if sample_size <= 0 or denom <= 0:
        return mean
    weight = sample_size / denom
    return mean + weight * (observed - mean)


def raw_form_strength(form: str, has_draw: bool = True) -> float:
    """Recency-weighted points share from a form string, in ``[0, 1]``.

    Only the five most recent results count.  With draws, W=3 and D=1 of a
    possible 3; without draws, W=1 of 1 and a D earns nothing.  Characters
    other than W/D score as losses.  An empty string is neutral (0.5).
    """
    if not form:
        return NEUTRAL_FORM

    max_points = _WIN_POINTS_WITH_DRAW if has_draw else 1
    points = 0.0
    max_possible = 0.0

    for i, ch in enumerate(form[: len(FORM_WEIGHTS)]):
        weight = FORM_WEIGHTS[i]
        result = ch.upper()
        max_possible += max_points * weight
        if result == "W":
            points += max_points * weight
        elif result == "D" and has_draw:
            points += weight

    return points / max_possible if max_possible > 0 else NEUTRAL_FORM


def form_strength(
    form: str,
    has_draw: bool = True,
    k: float = FORM_REGRESSION_K,
) -> float:
    """Form strength regressed toward 0.5 by the number of results seen."""
    games = min(len(form or ""), len(FORM_WEIGHTS))
    return regress(raw_form_strength(form, has_draw), NEUTRAL_FORM, games, k)
