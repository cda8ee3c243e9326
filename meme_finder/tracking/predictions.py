"""Prediction Store — the persisted log of tracked predictions.

A prediction is captured when a scored pair qualifies and is then
re-observed at fixed horizons by the Outcome Scheduler. The log is a
single blob: every operation reads the whole collection, mutates it in
memory and writes it back, trimmed to the newest `max_predictions`.

Storage failures never propagate: an unreadable log reads as empty and a
failed write is logged.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from meme_finder.config import TrackerConfig, load_tracker_config
from meme_finder.models import MarketSnapshot
from meme_finder.scoring.run_potential import RunPotentialScore
from meme_finder.storage import PREDICTIONS_KEY, BlobStore
from meme_finder.tracking.weights import WeightsStore
from meme_finder.utils.clock import HOUR_MS, hours_between, now_ms

log = logging.getLogger("tracking.predictions")


class Outcome(BaseModel):
    """A point-in-time re-observation of a tracked prediction."""

    model_config = ConfigDict(frozen=True)

    checked_at: int  # epoch ms
    hours_after_prediction: float
    price: float
    price_change_percent: float
    market_cap: float = 0.0
    volume_24h: float = 0.0


class Prediction(BaseModel):
    """A logged call on a token plus everything observed since."""

    id: str = Field(frozen=True)
    token_address: str = Field(frozen=True)
    token_symbol: str = Field(default="", frozen=True)
    token_name: str = Field(default="", frozen=True)

    # State at prediction time
    predicted_at: int = Field(frozen=True)  # epoch ms
    price_at_prediction: float = Field(frozen=True)
    market_cap_at_prediction: float = Field(default=0.0, frozen=True)
    liquidity_at_prediction: float = Field(default=0.0, frozen=True)
    volume_at_prediction: float = Field(default=0.0, frozen=True)

    # Scores at prediction time
    run_potential_score: int = Field(frozen=True)
    run_potential_grade: str = Field(frozen=True)
    phase: str = Field(frozen=True)
    safety_score: int = Field(default=0, frozen=True)
    social_score: int = Field(default=0, frozen=True)
    signals: list[str] = Field(default_factory=list, frozen=True)

    # Outcome tracking
    outcomes: list[Outcome] = Field(default_factory=list)
    is_success: bool | None = None
    max_gain_percent: float | None = None
    max_drawdown_percent: float | None = None

    def age_hours(self, now: int) -> float:
        return hours_between(self.predicted_at, now)

    def first_outcome_after(self, hours: float) -> Outcome | None:
        """First outcome recorded at least `hours` after the prediction."""
        for outcome in self.outcomes:
            if outcome.hours_after_prediction >= hours:
                return outcome
        return None


class PredictionStore:
    """Read/write access to the prediction log."""

    def __init__(
        self,
        store: BlobStore,
        weights: WeightsStore | None = None,
        config: TrackerConfig | None = None,
    ):
        self._store = store
        self.weights = weights or WeightsStore(store)
        self.config = config or load_tracker_config()

    # ── Persistence ──────────────────────────────────────────────────

    def _load(self) -> list[Prediction]:
        try:
            blob = self._store.load(PREDICTIONS_KEY)
            if not blob:
                return []
            return [Prediction.model_validate(p) for p in blob]
        except (OSError, ValueError, TypeError) as e:
            log.warning("Prediction log unreadable, starting empty: %s", e)
            return []

    def _save(self, predictions: list[Prediction]) -> None:
        # FIFO cap: oldest entries are dropped
        trimmed = predictions[-self.config.max_predictions:]
        if len(trimmed) < len(predictions):
            log.debug("Trimmed %d oldest predictions", len(predictions) - len(trimmed))
        try:
            self._store.save(PREDICTIONS_KEY, [p.model_dump() for p in trimmed])
        except (OSError, TypeError) as e:
            log.error("Failed to save predictions: %s", e)

    # ── Mutations ────────────────────────────────────────────────────

    def record(
        self,
        snapshot: MarketSnapshot,
        run_potential: RunPotentialScore,
        safety_score: int,
        social_score: int,
        signals: list[str] | None = None,
        now: int | None = None,
    ) -> Prediction:
        """Log a prediction for a scored snapshot.

        A prediction for the same token made within the cooldown window is
        replaced in place instead of duplicated.
        """
        now = now if now is not None else now_ms()
        prediction = Prediction(
            id=f"{snapshot.token_address}-{now}",
            token_address=snapshot.token_address,
            token_symbol=snapshot.symbol,
            token_name=snapshot.name,
            predicted_at=now,
            price_at_prediction=snapshot.price_usd,
            market_cap_at_prediction=snapshot.market_cap,
            liquidity_at_prediction=snapshot.liquidity_usd,
            volume_at_prediction=snapshot.volume.h24,
            run_potential_score=run_potential.score,
            run_potential_grade=run_potential.grade,
            phase=run_potential.phase,
            safety_score=safety_score,
            social_score=social_score,
            signals=list(signals if signals is not None else run_potential.signals),
        )

        predictions = self._load()
        cooldown_ms = self.config.cooldown_hours * HOUR_MS
        existing = next(
            (
                i for i, p in enumerate(predictions)
                if p.token_address == snapshot.token_address
                and now - p.predicted_at < cooldown_ms
            ),
            None,
        )

        if existing is not None:
            log.debug("Replacing open prediction %s", predictions[existing].id)
            predictions[existing] = prediction
        else:
            predictions.append(prediction)

        self._save(predictions)
        log.info(
            "Recorded prediction %s (%s %s, %s)",
            prediction.id, run_potential.grade, run_potential.phase, snapshot.symbol,
        )
        return prediction

    def append_outcome(
        self,
        prediction_id: str,
        snapshot: MarketSnapshot,
        now: int | None = None,
    ) -> Outcome | None:
        """Record a re-observation. Returns None for an unknown id.

        Recomputes max gain/drawdown over every outcome (floored/ceilinged
        at 0) and freezes is_success at the first outcome past the
        evaluation age.
        """
        predictions = self._load()
        index = next((i for i, p in enumerate(predictions) if p.id == prediction_id), None)
        if index is None:
            log.warning("Outcome for unknown prediction %s", prediction_id)
            return None

        now = now if now is not None else now_ms()
        prediction = predictions[index]
        current_price = snapshot.price_usd
        entry_price = prediction.price_at_prediction
        change_pct = (current_price - entry_price) / entry_price * 100 if entry_price > 0 else 0.0
        hours_after = prediction.age_hours(now)

        outcome = Outcome(
            checked_at=now,
            hours_after_prediction=hours_after,
            price=current_price,
            price_change_percent=change_pct,
            market_cap=snapshot.market_cap,
            volume_24h=snapshot.volume.h24,
        )
        prediction.outcomes.append(outcome)

        changes = [o.price_change_percent for o in prediction.outcomes]
        prediction.max_gain_percent = max(changes + [0.0])
        prediction.max_drawdown_percent = min(changes + [0.0])

        if hours_after >= self.config.evaluation_hours and prediction.is_success is None:
            threshold = self.weights.load().success_threshold
            prediction.is_success = prediction.max_gain_percent >= threshold
            log.info(
                "Prediction %s evaluated: %s (max gain %.1f%%)",
                prediction.id, "success" if prediction.is_success else "miss",
                prediction.max_gain_percent,
            )

        predictions[index] = prediction
        self._save(predictions)
        return outcome

    def reset(self) -> None:
        """Clear the whole log. Irreversible."""
        try:
            self._store.delete(PREDICTIONS_KEY)
        except OSError as e:
            log.error("Failed to clear predictions: %s", e)

    # ── Views ────────────────────────────────────────────────────────

    def all(self) -> list[Prediction]:
        return self._load()

    def get(self, prediction_id: str) -> Prediction | None:
        return next((p for p in self._load() if p.id == prediction_id), None)

    def is_due(self, prediction: Prediction, now: int) -> bool:
        """Whether a prediction needs an outcome check at `now`.

        Due when it is inside the tracking window, at least
        min_hours_between_checks have passed since the last check (or the
        prediction), and some reached horizon has no check within the
        tolerance.
        """
        cfg = self.config
        age = prediction.age_hours(now)
        if age > cfg.tracking_window_hours:
            return False

        last_check = prediction.outcomes[-1].checked_at if prediction.outcomes else prediction.predicted_at
        if hours_between(last_check, now) < cfg.min_hours_between_checks:
            return False

        for horizon in cfg.check_horizons_hours:
            if age < horizon:
                continue
            checked = any(
                abs(o.hours_after_prediction - horizon) < cfg.horizon_tolerance_hours
                for o in prediction.outcomes
            )
            if not checked:
                return True
        return False

    def list_due_for_check(self, now: int | None = None) -> list[Prediction]:
        """Predictions needing an outcome check, in log order (oldest first)."""
        now = now if now is not None else now_ms()
        return [p for p in self._load() if self.is_due(p, now)]

    def list_recent(self, limit: int = 50) -> list[Prediction]:
        predictions = sorted(self._load(), key=lambda p: p.predicted_at, reverse=True)
        return predictions[:limit]

    def list_top_performers(self, limit: int = 10) -> list[Prediction]:
        """Highest max gain first; predictions without outcomes are excluded."""
        checked = [p for p in self._load() if p.max_gain_percent is not None]
        checked.sort(key=lambda p: p.max_gain_percent or 0.0, reverse=True)
        return checked[:limit]
