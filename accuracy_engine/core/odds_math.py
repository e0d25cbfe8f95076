"""Fundamental odds mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services or models.

The engine works in **decimal** (European) odds because that is what the
ledger stores for closing lines.  American odds are converted at the edge
with :func:`american_to_decimal`.

Two vig-removal methods are exposed:

1. **Proportional** — divide each raw implied probability by the
   overround.  Works for any number of outcomes (1X2 soccer markets).
2. **Shin (1993)** — two-outcome bisection that corrects the
   favourite-longshot bias.  Used for moneyline markets without a draw.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

from typing import Final, List, Sequence, Tuple

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: American-odds magnitude floor.  |odds| < 100 is not a representable price.
_MIN_AMERICAN_MAGNITUDE: Final[int] = 100

#: When the normalised probability of side A is within this distance of 0.5
#: the Shin correction is numerically identical to proportional.
_SHIN_SYMMETRY_TOL: Final[float] = 1e-3

#: Bisection convergence tolerance for the Shin solve.
_SHIN_INNER_TOL: Final[float] = 1e-10

#: Maximum iterations for the Shin bisection.
_SHIN_MAX_ITER: Final[int] = 200

#: Overround floor below which the market is treated as vig-free.
_MIN_OVERROUND: Final[float] = 1.001

VIG_METHOD_PROPORTIONAL: Final[str] = "proportional"
VIG_METHOD_SHIN: Final[str] = "shin"


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal format.

    Examples::

        american_to_decimal(-110) → 1.9091
        american_to_decimal(+150) → 2.5000

    Raises:
        ValueError: If ``|american| < 100``.
    """
    if abs(american) < _MIN_AMERICAN_MAGNITUDE:
        raise ValueError(
            f"Invalid American odds {american!r}: magnitude must be ≥ 100."
        )
    if american > 0:
        return american / 100.0 + 1.0
    return 100.0 / abs(american) + 1.0


def decimal_to_implied(decimal_odds: float) -> float:
    """Raw (vig-inclusive) implied probability of a decimal price.

    Raises:
        ValueError: If ``decimal_odds <= 1.0`` (no payout beyond the stake).
    """
    if decimal_odds <= 1.0:
        raise ValueError(
            f"Decimal odds {decimal_odds!r} must be > 1.0."
        )
    return 1.0 / decimal_odds


def implied_probabilities(odds: Sequence[float]) -> List[float]:
    """Raw implied probabilities for every outcome of a market."""
    return [decimal_to_implied(o) for o in odds]


def market_margin(odds: Sequence[float]) -> float:
    """Bookmaker overround of a market (``0.05`` = 5% vig)."""
    return sum(implied_probabilities(odds)) - 1.0


# ---------------------------------------------------------------------------
# Vig removal
# ---------------------------------------------------------------------------


def remove_vig_proportional(odds: Sequence[float]) -> List[float]:
    """No-vig probabilities by proportional normalisation.

    Args:
        odds: Decimal odds for every outcome of one market, e.g.
            ``[home, draw, away]``.

    Returns:
        Probabilities in the same order, summing to 1.0.
    """
    raw = implied_probabilities(odds)
    total = sum(raw)
    return [p / total for p in raw]


def remove_vig_shin(
    odds_a: float,
    odds_b: float,
    *,
    inner_tol: float = _SHIN_INNER_TOL,
    max_iter: int = _SHIN_MAX_ITER,
) -> Tuple[float, float]:
    """No-vig probabilities for a two-outcome market via Shin (1993).

    The insider fraction ``z`` is estimated from the overround ``K`` and the
    Herfindahl index of the normalised raw probabilities ``q``::

        z = (K − 1) / (1 − Σ q_i²)

    and the true probability ``p_a`` then solves, by bisection::

        (1 − z) · p + z · p² / (p² + (1 − p)²) = q_a

    Near-even markets and vig-free inputs short-circuit to proportional.

    Args:
        odds_a: Decimal odds for side A (home by convention).
        odds_b: Decimal odds for side B.

    Returns:
        ``(p_a, p_b)`` summing to exactly 1.0.

    References:
        Shin, H. S. (1993). Measuring the Incidence of Insider Trading in
        a Market for State-Contingent Claims. *Economic Journal*, 103(420).
    """
    raw_a = decimal_to_implied(odds_a)
    raw_b = decimal_to_implied(odds_b)
    overround = raw_a + raw_b

    q_a = raw_a / overround
    q_b = raw_b / overround

    if overround < _MIN_OVERROUND or abs(q_a - 0.5) < _SHIN_SYMMETRY_TOL:
        return q_a, q_b

    herfindahl = q_a ** 2 + q_b ** 2
    z = (overround - 1.0) / max(1.0 - herfindahl, 1e-10)
    z = max(0.0, min(z, 0.499))

    # f(p) is strictly increasing on (0, 1) with f(0)=0 and f(1)=1.
    lo, hi = 1e-9, 1.0 - 1e-9
    for _ in range(max_iter):
        mid = (lo + hi) * 0.5
        denom_sq = mid ** 2 + (1.0 - mid) ** 2
        shin_val = (1.0 - z) * mid + z * (mid ** 2) / denom_sq
        if shin_val < q_a:
            lo = mid
        else:
            hi = mid
        if (hi - lo) < inner_tol:
            break

    p_a = (lo + hi) * 0.5
    p_b = 1.0 - p_a
    total = p_a + p_b
    return p_a / total, p_b / total


def no_vig_home_probability(
    home: float,
    away: float,
    draw: float | None = None,
    method: str = VIG_METHOD_PROPORTIONAL,
) -> float:
    """No-vig home probability from a full market's decimal odds.

    Shin is only defined here for two-outcome markets; a market with a draw
    price always uses proportional normalisation.

    Raises:
        ValueError: On an unknown ``method`` or invalid odds.
    """
    if method == VIG_METHOD_SHIN and draw is None:
        return remove_vig_shin(home, away)[0]
    if method not in (VIG_METHOD_PROPORTIONAL, VIG_METHOD_SHIN):
        raise ValueError(f"Unknown vig removal method {method!r}")
    odds = [home, away] if draw is None else [home, away, draw]
    return remove_vig_proportional(odds)[0]
