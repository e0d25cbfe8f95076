"""Core mathematics and configuration for the Accuracy Engine.

This package contains pure, sport-agnostic building blocks:

- ``sport_config``  — per-sport constants (league averages, home advantage, Elo scale)
- ``model_inputs``  — DTOs flowing into and out of the prediction models
- ``smoothing``     — regression to the mean and recent-form strength
- ``team_strength`` — attack/defense multipliers from season totals
- ``odds_math``     — odds conversion and vig removal

Nothing in this package imports from ``accuracy_engine.services`` or
``accuracy_engine.models``.  All modules are side-effect-free and
unit-testable in isolation.
"""
