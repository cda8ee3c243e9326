"""Prediction tracking and self-adjusting weights.

Store:     meme_finder/tracking/predictions.py (log of predictions + outcomes)
Weights:   meme_finder/tracking/weights.py     (AlgorithmWeights record)
Scheduler: meme_finder/tracking/scheduler.py   (outcome re-checks at 1h/6h/24h/48h/7d)
Analyzer:  meme_finder/tracking/analyzer.py    (accuracy breakdowns + weight nudges)
Tracker:   meme_finder/tracking/tracker.py     (score-and-record facade)
"""

from meme_finder.tracking.analyzer import (
    SIGNAL_TO_WEIGHT,
    PerformanceStats,
    PredictionAnalysis,
    WeightAnalyzer,
    signal_label,
)
from meme_finder.tracking.predictions import Outcome, Prediction, PredictionStore
from meme_finder.tracking.scheduler import OutcomeScheduler
from meme_finder.tracking.tracker import PredictionTracker, TokenScores, qualifies
from meme_finder.tracking.weights import AlgorithmWeights, WeightsStore

__all__ = [
    "SIGNAL_TO_WEIGHT",
    "PerformanceStats",
    "PredictionAnalysis",
    "WeightAnalyzer",
    "signal_label",
    "Outcome",
    "Prediction",
    "PredictionStore",
    "OutcomeScheduler",
    "PredictionTracker",
    "TokenScores",
    "qualifies",
    "AlgorithmWeights",
    "WeightsStore",
]
