"""Weight Analyzer — turns evaluated predictions into accuracy stats and
nudged algorithm weights.

A prediction counts as evaluated once it has an outcome at least 24h
after it was made. Below `min_evaluated_predictions` evaluated
predictions nothing is adjusted and the analysis is flagged
needs_more_data.

Each mapped signal family with enough occurrences moves its weight by
(success_rate / accuracy - 1) * adjustment_rate, clamped to the weight
bounds. The damped step keeps one noisy pass from swinging a weight.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Callable, Iterable

from pydantic import BaseModel, Field

from meme_finder.tracking.predictions import Prediction, PredictionStore
from meme_finder.tracking.weights import AlgorithmWeights, WeightsStore
from meme_finder.utils.clock import now_ms

log = logging.getLogger("tracking.analyzer")

# Signal label -> AlgorithmWeights field
SIGNAL_TO_WEIGHT: dict[str, str] = {
    "Strong accumulation": "buy_pressure_weight",
    "Healthy buy pressure": "buy_pressure_weight",
    "Buy pressure accelerating": "volume_acceleration_weight",
    "High volume with stable price": "price_compression_weight",
    "Volume spike with price lagging": "price_compression_weight",
    "Sweet spot market cap": "market_cap_range_weight",
    "Ideal age": "age_weight",
    "Healthy MC/Liquidity ratio": "liquidity_ratio_weight",
    "Has social presence": "social_presence_weight",
}

# "Strong accumulation (72% buys)" -> "Strong accumulation"
# "Ideal age (12-72 hours) - past initial dump risk" -> "Ideal age"
_QUALIFIER = re.compile(r"\s+(\(.*|-\s.*)$")


def signal_label(signal: str) -> str:
    """Strip the trailing " (...)" or " - ..." qualifier from a signal."""
    return _QUALIFIER.sub("", signal).strip()


class PerformanceStats(BaseModel):
    count: int = 0
    success_rate: float = 0.0  # % of predictions with is_success
    avg_gain: float = 0.0  # mean max_gain_percent


class PredictionAnalysis(BaseModel):
    total_predictions: int = 0
    evaluated_predictions: int = 0
    successful_predictions: int = 0
    accuracy: float = 0.0
    avg_gain: float = 0.0  # % change at the first >=24h check
    avg_max_gain: float = 0.0
    avg_max_drawdown: float = 0.0
    signal_performance: dict[str, PerformanceStats] = Field(default_factory=dict)
    phase_performance: dict[str, PerformanceStats] = Field(default_factory=dict)
    grade_performance: dict[str, PerformanceStats] = Field(default_factory=dict)
    needs_more_data: bool = False


def performance_by(
    predictions: Iterable[Prediction],
    keys: Callable[[Prediction], Iterable[str]],
) -> dict[str, PerformanceStats]:
    """Group predictions under every key they yield and aggregate each group."""
    counts: dict[str, int] = defaultdict(int)
    successes: dict[str, int] = defaultdict(int)
    gains: dict[str, float] = defaultdict(float)

    for p in predictions:
        for key in keys(p):
            counts[key] += 1
            if p.is_success:
                successes[key] += 1
            gains[key] += p.max_gain_percent or 0.0

    return {
        key: PerformanceStats(
            count=count,
            success_rate=successes[key] / count * 100,
            avg_gain=gains[key] / count,
        )
        for key, count in counts.items()
    }


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class WeightAnalyzer:
    """Computes prediction performance and adjusts AlgorithmWeights."""

    def __init__(self, predictions: PredictionStore, weights: WeightsStore | None = None):
        self.predictions = predictions
        self.weights = weights or predictions.weights
        self.config = predictions.config

    def evaluated(self, predictions: list[Prediction]) -> list[Prediction]:
        hours = self.config.evaluation_hours
        return [p for p in predictions if p.first_outcome_after(hours) is not None]

    def adjust_weights(
        self,
        weights: AlgorithmWeights,
        evaluated: list[Prediction],
        accuracy: float,
    ) -> AlgorithmWeights:
        """Return a copy of weights nudged toward better-performing signals."""
        cfg = self.config
        adjusted = weights.model_copy()
        by_label = performance_by(
            evaluated,
            lambda p: dict.fromkeys(signal_label(s) for s in p.signals),
        )

        # Labels arrive in signal order; two labels can feed one weight, and
        # with clamping the order of application matters
        for label, perf in by_label.items():
            field_name = SIGNAL_TO_WEIGHT.get(label)
            if field_name is None or perf.count < cfg.min_signal_occurrences:
                continue
            relative = perf.success_rate / (accuracy or 1)
            current = getattr(adjusted, field_name)
            new_value = max(cfg.min_weight, min(cfg.max_weight, current + (relative - 1) * cfg.adjustment_rate))
            setattr(adjusted, field_name, new_value)
            log.debug("%s: %.3f -> %.3f (%s, %.0f%% vs %.0f%%)",
                      field_name, current, new_value, label, perf.success_rate, accuracy)

        return adjusted

    def analyze(self, now: int | None = None) -> tuple[PredictionAnalysis, AlgorithmWeights]:
        """Analyze the log and persist adjusted weights when data suffices."""
        predictions = self.predictions.all()
        weights = self.weights.load()
        evaluated = self.evaluated(predictions)

        if len(evaluated) < self.config.min_evaluated_predictions:
            log.info("Need more data: %d/%d evaluated predictions",
                     len(evaluated), self.config.min_evaluated_predictions)
            return PredictionAnalysis(
                total_predictions=len(predictions),
                evaluated_predictions=len(evaluated),
                needs_more_data=True,
            ), weights

        successful = [p for p in evaluated if p.is_success]
        accuracy = len(successful) / len(evaluated) * 100

        checkpoint_changes = []
        for p in evaluated:
            checkpoint = p.first_outcome_after(self.config.evaluation_hours)
            checkpoint_changes.append(checkpoint.price_change_percent if checkpoint else 0.0)

        analysis = PredictionAnalysis(
            total_predictions=len(predictions),
            evaluated_predictions=len(evaluated),
            successful_predictions=len(successful),
            accuracy=accuracy,
            avg_gain=_mean(checkpoint_changes),
            avg_max_gain=_mean([p.max_gain_percent or 0.0 for p in evaluated]),
            avg_max_drawdown=_mean([p.max_drawdown_percent or 0.0 for p in evaluated]),
            signal_performance=performance_by(evaluated, lambda p: dict.fromkeys(p.signals)),
            phase_performance=performance_by(evaluated, lambda p: [p.phase]),
            grade_performance=performance_by(evaluated, lambda p: [p.run_potential_grade]),
        )

        new_weights = self.adjust_weights(weights, evaluated, accuracy)
        new_weights.updated_at = now if now is not None else now_ms()
        new_weights.total_predictions = len(evaluated)
        new_weights.successful_predictions = len(successful)
        new_weights.accuracy = accuracy
        self.weights.save(new_weights)

        log.info("Analyzed %d predictions: %.1f%% accuracy", len(evaluated), accuracy)
        return analysis, new_weights

    def reset_weights(self) -> None:
        self.weights.reset()
