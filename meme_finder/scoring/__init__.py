"""Heuristic scorers — pure functions of a MarketSnapshot.

Safety:        meme_finder/scoring/safety.py
Run potential: meme_finder/scoring/run_potential.py (score, grade, phase)
Sentiment:     meme_finder/scoring/sentiment.py (on-chain + optional Reddit)

The scorers use fixed constants. AlgorithmWeights computed by the
tracker are not read here.
"""

from meme_finder.scoring.grades import (
    RUN_POTENTIAL_BREAKPOINTS,
    SAFETY_BREAKPOINTS,
    grade_for,
    round_half_up,
)
from meme_finder.scoring.run_potential import (
    PHASE_RULES,
    PHASES,
    PhaseInputs,
    RunPotentialScore,
    calculate_run_potential,
    classify_phase,
    sort_by_run_potential,
)
from meme_finder.scoring.safety import SafetyScore, calculate_safety_score
from meme_finder.scoring.sentiment import (
    SENTIMENT_LABELS,
    CombinedSentiment,
    SocialMetrics,
    calculate_social_metrics,
    combine_sentiment,
    sentiment_label,
)

__all__ = [
    "RUN_POTENTIAL_BREAKPOINTS",
    "SAFETY_BREAKPOINTS",
    "grade_for",
    "round_half_up",
    "PHASE_RULES",
    "PHASES",
    "PhaseInputs",
    "RunPotentialScore",
    "calculate_run_potential",
    "classify_phase",
    "sort_by_run_potential",
    "SafetyScore",
    "calculate_safety_score",
    "SENTIMENT_LABELS",
    "CombinedSentiment",
    "SocialMetrics",
    "calculate_social_metrics",
    "combine_sentiment",
    "sentiment_label",
]
