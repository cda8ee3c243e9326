"""Auto-tracker — scores a snapshot and logs a prediction when it qualifies.

Only high-conviction calls are tracked: run-potential grade A or B in the
accumulation or early-momentum phase.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from meme_finder.models import MarketSnapshot, RedditSentiment
from meme_finder.scoring.run_potential import RunPotentialScore, calculate_run_potential
from meme_finder.scoring.safety import SafetyScore, calculate_safety_score
from meme_finder.scoring.sentiment import CombinedSentiment, calculate_social_metrics, combine_sentiment
from meme_finder.tracking.analyzer import WeightAnalyzer
from meme_finder.tracking.predictions import Prediction, PredictionStore

TRACKED_GRADES = frozenset({"A", "B"})
TRACKED_PHASES = frozenset({"accumulation", "early-momentum"})


@dataclass
class TokenScores:
    safety: SafetyScore
    run_potential: RunPotentialScore
    sentiment: CombinedSentiment


def qualifies(run_potential: RunPotentialScore) -> bool:
    return run_potential.grade in TRACKED_GRADES and run_potential.phase in TRACKED_PHASES


class PredictionTracker:
    def __init__(self, store: PredictionStore, analyzer: WeightAnalyzer | None = None):
        self.store = store
        self.analyzer = analyzer or WeightAnalyzer(store)

    def score(
        self,
        snapshot: MarketSnapshot,
        reddit: RedditSentiment | None = None,
        now: int | None = None,
    ) -> TokenScores:
        return TokenScores(
            safety=calculate_safety_score(snapshot, now),
            run_potential=calculate_run_potential(snapshot, now),
            sentiment=combine_sentiment(calculate_social_metrics(snapshot), reddit),
        )

    def track(
        self,
        snapshot: MarketSnapshot,
        reddit: RedditSentiment | None = None,
        now: int | None = None,
    ) -> Prediction | None:
        """Score the snapshot and record a prediction if it qualifies."""
        scores = self.score(snapshot, reddit, now)
        if not qualifies(scores.run_potential):
            return None
        return self.store.record(
            snapshot,
            scores.run_potential,
            safety_score=scores.safety.score,
            social_score=scores.sentiment.overall_score,
            now=now,
        )

    def stats(self, now: int | None = None) -> dict[str, Any]:
        """Summary for display. Runs an analysis pass, which may persist weights."""
        analysis, weights = self.analyzer.analyze(now)
        return {
            "total_tracked": analysis.total_predictions,
            "evaluated": analysis.evaluated_predictions,
            "successful": analysis.successful_predictions,
            "accuracy": analysis.accuracy,
            "avg_gain": analysis.avg_max_gain,
            "needs_more_data": analysis.needs_more_data,
            "weights": weights.model_dump(),
        }
