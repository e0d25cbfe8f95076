"""Sport-level configuration — all sport-specific constants in one place.

This module is the **registry** for every constant that differs between
sports.  Nowhere else in the codebase should league scoring averages,
home-advantage figures, or Elo scale factors be hard-coded.

Architecture
------------
:class:`SportConfig` is a frozen dataclass carrying all per-sport constants.
Named constructors (:meth:`SportConfig.soccer`, :meth:`SportConfig.hockey`,
...) return pre-populated instances and :meth:`SportConfig.for_sport` looks
one up by sport id.  Every model in :mod:`accuracy_engine.prediction_models`
accepts an optional config so callers can inject a calibrated variant.

Typical usage::

    from accuracy_engine.core.sport_config import SportConfig

    cfg = SportConfig.soccer()

    # Override a single constant for a league with a weaker home edge:
    from dataclasses import replace
    custom_cfg = replace(cfg, home_advantage=0.18)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Final, Optional, Tuple


#: Sport identifier strings used in model inputs and ledger records.
SPORT_ID_SOCCER: Final[str] = "soccer"
SPORT_ID_BASKETBALL: Final[str] = "basketball"
SPORT_ID_FOOTBALL: Final[str] = "football"
SPORT_ID_HOCKEY: Final[str] = "hockey"

ALL_SPORT_IDS: Final[Tuple[str, ...]] = (
    SPORT_ID_SOCCER,
    SPORT_ID_BASKETBALL,
    SPORT_ID_FOOTBALL,
    SPORT_ID_HOCKEY,
)


@dataclass(frozen=True)
class SportConfig:
    """Immutable configuration bundle for a single sport.

    Attributes:
        sport_id: Short identifier (``"soccer"``, ``"hockey"``, ...).
        sport_name: Human-readable name for logging and display.

        --- Scoring baseline ---
        league_avg_score: League-average combined score per game (both
            teams).  Per-team rate is half of this.  Overridden per match
            by ``ModelInput.league_average_goals`` when supplied.

        --- Home advantage ---
        home_advantage: Home edge in the sport's native scoring unit.
            Soccer/hockey: multiplicative boost on home expected goals
            (0.25 = +25%).  Basketball/football: additive points.
        home_elo_bonus: Home edge in Elo rating points for the Elo models.

        --- Elo ---
        elo_scale: Rating points per point (or goal) of per-game
            differential.  ``0.0`` for sports without an Elo model.

        --- Form ---
        form_weight: How strongly regressed recent form nudges the
            prediction.  Soccer multiplies expected goals by
            ``1 + form_weight * (form - 0.5)``; Elo sports add
            ``(form - 0.5) * 100 * form_weight`` rating points.
        has_draw: Whether a "D" in a form string earns partial credit and
            whether the sport models a draw outcome at all.

        --- Poisson ---
        max_goals: Truncation point of the goal grid (inclusive).

        --- Ties ---
        draw_rate: Fixed tie probability reserved by Elo sports that can
            (rarely) tie.  NFL historical rate is ~0.3%.

        --- Display ---
        score_range: ``(lo, hi)`` clamp for expected points in the
            additive expected-score formula, or ``None``.

        --- Conservative Elo (hockey) ---
        max_regression_weight: Ceiling on the weight given to observed
            goal differential.  ``1.0`` disables the cap.
        full_weight_games: Games played at which the ceiling is reached.
        prob_clamp: ``(lo, hi)`` bounds on the final home win probability,
            or ``None``.
    """

    # Identity
    sport_id: str
    sport_name: str

    # Scoring baseline
    league_avg_score: float

    # Home advantage
    home_advantage: float
    home_elo_bonus: float

    # Elo
    elo_scale: float

    # Form
    form_weight: float
    has_draw: bool

    # Poisson
    max_goals: int = 10

    # Ties
    draw_rate: float = 0.0

    # Display
    score_range: Optional[Tuple[float, float]] = None

    # Conservative Elo
    max_regression_weight: float = 1.0
    full_weight_games: int = 0
    prob_clamp: Optional[Tuple[float, float]] = None

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def soccer(cls) -> SportConfig:
        """Return the soccer configuration (Poisson / Dixon-Coles)."""
        return cls(
            sport_id=SPORT_ID_SOCCER,
            sport_name="Soccer",
            league_avg_score=2.5,       # goals per game, top-5 European leagues
            home_advantage=0.25,        # +25% home expected goals
            home_elo_bonus=0.0,
            elo_scale=0.0,
            form_weight=0.30,
            has_draw=True,
            max_goals=10,
        )

    @classmethod
    def basketball(cls) -> SportConfig:
        """Return the basketball configuration (Elo, no draws)."""
        return cls(
            sport_id=SPORT_ID_BASKETBALL,
            sport_name="Basketball",
            league_avg_score=220.0,     # ~110 points per team
            home_advantage=3.5,         # points
            home_elo_bonus=3.5 * 25.0,  # home points expressed in rating
            elo_scale=25.0,
            form_weight=0.40,           # more games, form is more informative
            has_draw=False,
            score_range=(90.0, 140.0),
        )

    @classmethod
    def football(cls) -> SportConfig:
        """Return the American football configuration (Elo + NFL tie rate)."""
        return cls(
            sport_id=SPORT_ID_FOOTBALL,
            sport_name="American Football",
            league_avg_score=44.0,      # ~22 points per team
            home_advantage=2.5,         # points
            home_elo_bonus=2.5 * 15.0,
            elo_scale=15.0,
            form_weight=0.35,
            has_draw=False,
            draw_rate=0.003,            # NFL ties, historical frequency
            score_range=(10.0, 45.0),
        )

    @classmethod
    def hockey(cls) -> SportConfig:
        """Return the hockey configuration (conservative Elo).

        NHL parity, overtime/shootout resolution and goaltender variance make
        sharp predictions unreliable, so every knob here is deliberately
        timid: a small home-ice bonus (~52-53% implied), a 20% form weight,
        goal differential capped at 70% weight until 40 games, and a final
        probability clamp of [0.35, 0.65].
        """
        return cls(
            sport_id=SPORT_ID_HOCKEY,
            sport_name="Hockey",
            league_avg_score=6.0,       # ~3 goals per team
            home_advantage=0.10,        # expected-goals display only
            home_elo_bonus=15.0,
            elo_scale=50.0,
            form_weight=0.20,
            has_draw=False,
            max_goals=10,
            max_regression_weight=0.7,
            full_weight_games=40,
            prob_clamp=(0.35, 0.65),
        )

    @classmethod
    def for_sport(cls, sport_id: str) -> SportConfig:
        """Look up the canonical configuration for ``sport_id``.

        Raises:
            ValueError: If ``sport_id`` is not one of :data:`ALL_SPORT_IDS`.
        """
        constructors = {
            SPORT_ID_SOCCER: cls.soccer,
            SPORT_ID_BASKETBALL: cls.basketball,
            SPORT_ID_FOOTBALL: cls.football,
            SPORT_ID_HOCKEY: cls.hockey,
        }
        try:
            return constructors[sport_id]()
        except KeyError:
            raise ValueError(
                f"Unknown sport {sport_id!r}; expected one of {ALL_SPORT_IDS}"
            ) from None

    # ------------------------------------------------------------------ #
    #  Convenience accessors                                               #
    # ------------------------------------------------------------------ #

    @property
    def avg_per_team(self) -> float:
        """League-average score for one side."""
        return self.league_avg_score / 2.0

    def uses_elo(self) -> bool:
        """Return True if the production model for this sport is Elo-based."""
        return self.elo_scale > 0

    def neutral_site(self) -> SportConfig:
        """Return a copy of this config with every home-advantage term zeroed.

        Examples::

            cfg = SportConfig.basketball().neutral_site()
            assert cfg.home_elo_bonus == 0.0
        """
        return replace(self, home_advantage=0.0, home_elo_bonus=0.0)

    def __repr__(self) -> str:
        return (
            f"SportConfig(sport_id={self.sport_id!r}, "
            f"home_adv={self.home_advantage}, "
            f"elo_scale={self.elo_scale}, "
            f"form_weight={self.form_weight})"
        )


def detect_sport_type(sport: Optional[str]) -> str:
    """Map a free-form sport key onto one of the four sport ids.

    Exact sport ids pass through unchanged.  Also accepts The Odds API
    style keys (``"basketball_nba"``, ``"icehockey_nhl"``,
    ``"americanfootball_nfl"``) as well as plain names.  Anything
    unrecognised is treated as soccer.

    Examples::

        detect_sport_type("basketball_euroleague") → "basketball"
        detect_sport_type("NHL")                   → "hockey"
        detect_sport_type("soccer_epl")            → "soccer"
    """
    s = (sport or "").lower()
    if s in ALL_SPORT_IDS:
        return s
    if "basketball" in s or "nba" in s or "euroleague" in s:
        return SPORT_ID_BASKETBALL
    if "american" in s or "nfl" in s or "ncaa football" in s:
        return SPORT_ID_FOOTBALL
    if "hockey" in s or "nhl" in s or "khl" in s:
        return SPORT_ID_HOCKEY
    return SPORT_ID_SOCCER
