"""
Accuracy Engine - deterministic, explainable sports outcome probabilities.

The engine turns team statistics into per-sport outcome probabilities,
records every prediction in a ledger, and scores its own calibration and
skill against the betting market once results are in.

Example usage:
    from accuracy_engine.core.model_inputs import ModelInput, TeamStats
    from accuracy_engine.prediction_models import predict_match

    probs = predict_match(ModelInput(
        sport="soccer",
        home_stats=TeamStats(played=20, scored=35, conceded=15),
        away_stats=TeamStats(played=20, scored=20, conceded=25),
        home_form="WWWDW",
        away_form="LDLLW",
    ))
"""

__version__ = "1.0.0"
