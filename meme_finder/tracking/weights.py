"""Algorithm weights — the single global record the Weight Analyzer tunes.

Seven multiplicative factors (one per signal family), two thresholds and
rollup accuracy statistics. Loaded with a default-merge: any field
missing from the stored blob falls back to its default.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from meme_finder.storage import WEIGHTS_KEY, BlobStore
from meme_finder.utils.clock import now_ms

log = logging.getLogger("tracking.weights")

WEIGHT_FIELDS = (
    "buy_pressure_weight",
    "volume_acceleration_weight",
    "price_compression_weight",
    "market_cap_range_weight",
    "age_weight",
    "liquidity_ratio_weight",
    "social_presence_weight",
)


class AlgorithmWeights(BaseModel):
    """Current weights of record. Factors are bounded to [0.5, 2.0]."""

    # Run potential factors
    buy_pressure_weight: float = 1.0
    volume_acceleration_weight: float = 1.0
    price_compression_weight: float = 1.0
    market_cap_range_weight: float = 1.0
    age_weight: float = 1.0
    liquidity_ratio_weight: float = 1.0
    social_presence_weight: float = 1.0

    # Thresholds
    already_ran_threshold: float = 200.0  # % gain that means "already ran" (3x)
    success_threshold: float = 50.0  # % max gain for a successful prediction

    # Rollup
    updated_at: int = Field(default_factory=now_ms)
    total_predictions: int = 0
    successful_predictions: int = 0
    accuracy: float = 0.0


class WeightsStore:
    """Loads and saves the AlgorithmWeights blob."""

    def __init__(self, store: BlobStore):
        self._store = store

    def load(self) -> AlgorithmWeights:
        """Current weights, or defaults when missing or unreadable."""
        try:
            blob = self._store.load(WEIGHTS_KEY)
            if not blob:
                return AlgorithmWeights()
            return AlgorithmWeights.model_validate(blob)
        except (OSError, ValueError, TypeError) as e:
            log.warning("Weights unreadable, using defaults: %s", e)
            return AlgorithmWeights()

    def save(self, weights: AlgorithmWeights) -> None:
        try:
            self._store.save(WEIGHTS_KEY, weights.model_dump())
        except (OSError, TypeError) as e:
            log.error("Failed to save weights: %s", e)

    def reset(self) -> None:
        """Drop the stored weights so the next load returns defaults."""
        try:
            self._store.delete(WEIGHTS_KEY)
        except OSError as e:
            log.error("Failed to reset weights: %s", e)
