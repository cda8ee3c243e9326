"""Tests for the Weight Analyzer.

Validates the evaluated-prediction threshold, accuracy breakdowns by
signal/phase/grade, and bounded weight adjustment across repeated passes.
"""

from __future__ import annotations

import pytest

from meme_finder.config import TrackerConfig
from meme_finder.models import MarketSnapshot
from meme_finder.scoring.run_potential import RunPotentialScore
from meme_finder.storage import WEIGHTS_KEY, MemoryStore
from meme_finder.tracking.analyzer import WeightAnalyzer, performance_by, signal_label
from meme_finder.tracking.predictions import PredictionStore
from meme_finder.tracking.weights import WEIGHT_FIELDS, AlgorithmWeights
from meme_finder.utils.clock import HOUR_MS

NOW = 1_760_000_000_000
ACCELERATING = "Buy pressure accelerating"
STABLE_VOLUME = "High volume with stable price - accumulation phase"
VOLUME_SPIKE = "Volume spike with price lagging - potential breakout"


@pytest.fixture
def blobs():
    return MemoryStore()


@pytest.fixture
def store(blobs):
    return PredictionStore(blobs, config=TrackerConfig())


def _add_evaluated(store, index: int, gain_pct: float, signals=(), phase="accumulation", grade="A"):
    """Record a prediction and give it a 24h outcome with the given gain."""
    address = f"TOK{index}"
    run = RunPotentialScore(score=80, grade=grade, phase=phase, signals=list(signals))
    snapshot = MarketSnapshot(token_address=address, price_usd=1.0)
    p = store.record(snapshot, run, 60, 60, now=NOW + index)
    store.append_outcome(
        p.id,
        MarketSnapshot(token_address=address, price_usd=1.0 + gain_pct / 100),
        now=NOW + index + 24 * HOUR_MS,
    )
    return p


def _split_log(store, signal_on_winners: bool):
    """5 winners (+80%) and 5 losers (-10%); the signal sits on one side."""
    for i in range(5):
        _add_evaluated(store, i, 80, signals=[ACCELERATING] if signal_on_winners else [])
    for i in range(5, 10):
        _add_evaluated(store, i, -10, signals=[] if signal_on_winners else [ACCELERATING], phase="breakout", grade="B")


class TestSignalLabel:
    @pytest.mark.parametrize("signal,label", [
        ("Strong accumulation (72% buys)", "Strong accumulation"),
        ("Healthy buy pressure (58% buys)", "Healthy buy pressure"),
        ("Ideal age (12-72 hours) - past initial dump risk", "Ideal age"),
        ("High volume with stable price - accumulation phase", "High volume with stable price"),
        ("Volume spike with price lagging - potential breakout", "Volume spike with price lagging"),
        ("Sweet spot market cap ($500K-$10M)", "Sweet spot market cap"),
        ("Healthy MC/Liquidity ratio", "Healthy MC/Liquidity ratio"),
        ("Buy pressure accelerating", "Buy pressure accelerating"),
    ])
    def test_strips_qualifier(self, signal, label):
        assert signal_label(signal) == label


class TestDataThreshold:
    """No adjustment below 10 evaluated predictions."""

    def test_nine_evaluated_needs_more_data(self, store, blobs):
        for i in range(9):
            _add_evaluated(store, i, 80, signals=[ACCELERATING])

        analysis, weights = WeightAnalyzer(store).analyze(now=NOW)
        assert analysis.needs_more_data
        assert analysis.evaluated_predictions == 9
        assert all(getattr(weights, f) == 1.0 for f in WEIGHT_FIELDS)
        assert blobs.load(WEIGHTS_KEY) is None

    def test_unevaluated_predictions_not_counted(self, store):
        for i in range(9):
            _add_evaluated(store, i, 80)
        # Only a 6h outcome: not yet evaluated
        p = store.record(MarketSnapshot(token_address="LATE", price_usd=1.0),
                         RunPotentialScore(score=80, grade="A", phase="accumulation"), 60, 60, now=NOW)
        store.append_outcome(p.id, MarketSnapshot(token_address="LATE", price_usd=2.0), now=NOW + 6 * HOUR_MS)

        analysis, _ = WeightAnalyzer(store).analyze(now=NOW)
        assert analysis.total_predictions == 10
        assert analysis.evaluated_predictions == 9
        assert analysis.needs_more_data

    def test_ten_evaluated_runs_analysis(self, store, blobs):
        _split_log(store, signal_on_winners=True)

        analysis, weights = WeightAnalyzer(store).analyze(now=NOW)
        assert not analysis.needs_more_data
        assert analysis.evaluated_predictions == 10
        assert analysis.successful_predictions == 5
        assert analysis.accuracy == pytest.approx(50.0)
        assert weights.accuracy == pytest.approx(50.0)
        assert weights.total_predictions == 10
        assert weights.updated_at == NOW
        assert blobs.load(WEIGHTS_KEY) is not None


class TestBreakdowns:
    def test_aggregates(self, store):
        _split_log(store, signal_on_winners=True)
        analysis, _ = WeightAnalyzer(store).analyze(now=NOW)

        assert analysis.avg_max_gain == pytest.approx(40.0)
        assert analysis.avg_max_drawdown == pytest.approx(-5.0)
        assert analysis.avg_gain == pytest.approx(35.0)

        assert analysis.phase_performance["accumulation"].success_rate == pytest.approx(100.0)
        assert analysis.phase_performance["breakout"].success_rate == 0.0
        assert analysis.grade_performance["A"].count == 5
        assert analysis.grade_performance["B"].avg_gain == 0.0

        accel = analysis.signal_performance[ACCELERATING]
        assert accel.count == 5
        assert accel.avg_gain == pytest.approx(80.0)

    def test_performance_by_multiple_keys(self, store):
        for i in range(3):
            _add_evaluated(store, i, 60, signals=["Strong accumulation (70% buys)", "Has social presence"])
        stats = performance_by(store.all(), lambda p: {signal_label(s) for s in p.signals})
        assert stats["Strong accumulation"].count == 3
        assert stats["Has social presence"].success_rate == pytest.approx(100.0)


class TestWeightAdjustment:
    """Damped, bounded nudges toward signals that beat overall accuracy."""

    def test_outperforming_signal_nudged_up(self, store):
        _split_log(store, signal_on_winners=True)
        _, weights = WeightAnalyzer(store).analyze(now=NOW)
        # 100% vs 50% accuracy: +(2 - 1) * 0.1
        assert weights.volume_acceleration_weight == pytest.approx(1.1)
        assert weights.buy_pressure_weight == 1.0

    def test_repeated_passes_capped_at_max(self, store):
        _split_log(store, signal_on_winners=True)
        analyzer = WeightAnalyzer(store)
        for _ in range(15):
            _, weights = analyzer.analyze(now=NOW)
        assert weights.volume_acceleration_weight == 2.0
        assert store.weights.load().volume_acceleration_weight == 2.0

    def test_repeated_passes_floored_at_min(self, store):
        _split_log(store, signal_on_winners=False)
        analyzer = WeightAnalyzer(store)
        for _ in range(15):
            _, weights = analyzer.analyze(now=NOW)
        assert weights.volume_acceleration_weight == 0.5

    def test_rare_signal_not_adjusted(self, store):
        for i in range(10):
            signals = [ACCELERATING] if i < 4 else []
            _add_evaluated(store, i, 80 if i < 4 else -10, signals=signals)
        _, weights = WeightAnalyzer(store).analyze(now=NOW)
        assert weights.volume_acceleration_weight == 1.0

    def test_dynamic_signal_text_maps_to_weight(self, store):
        for i in range(5):
            _add_evaluated(store, i, 80, signals=[f"Strong accumulation ({70 + i}% buys)"])
        for i in range(5, 10):
            _add_evaluated(store, i, -10)
        _, weights = WeightAnalyzer(store).analyze(now=NOW)
        assert weights.buy_pressure_weight == pytest.approx(1.1)

    def test_shared_weight_applied_in_signal_order(self, store):
        """Two labels feeding one weight are applied in the order they were
        first seen, so clamping gives the same result on every run."""
        store.weights.save(AlgorithmWeights(price_compression_weight=1.95))
        for i in range(5):
            _add_evaluated(store, i, 80, signals=[STABLE_VOLUME, VOLUME_SPIKE])
        for i in range(5, 15):
            _add_evaluated(store, i, -10, signals=[VOLUME_SPIKE])
        for i in range(15, 20):
            _add_evaluated(store, i, 80)

        analysis, weights = WeightAnalyzer(store).analyze(now=NOW)
        # 50% accuracy. Stable volume (100%) clamps 1.95 + 0.1 to 2.0,
        # then volume spike (5/15) takes it down by 0.1 / 3
        assert weights.price_compression_weight == pytest.approx(2.0 - 0.1 / 3)
        assert list(analysis.signal_performance) == [STABLE_VOLUME, VOLUME_SPIKE]

    def test_reset_weights(self, store, blobs):
        _split_log(store, signal_on_winners=True)
        analyzer = WeightAnalyzer(store)
        analyzer.analyze(now=NOW)
        analyzer.reset_weights()
        assert blobs.load(WEIGHTS_KEY) is None
        assert store.weights.load().volume_acceleration_weight == 1.0
