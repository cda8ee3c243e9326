"""Run Potential — is this coin primed to pump, or has it already run?

Key principles:
1. Look for accumulation (buys > sells, volume building, price stable)
2. Avoid coins that already pumped (huge price gains, selling pressure)
3. Find early momentum (volume accelerating, slight price uptick)
4. Prefer a healthy market-cap-to-liquidity ratio (room to grow)

Scoring starts neutral at 50. The phase tag is classified separately by
an ordered rule list where the first matching rule wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

from meme_finder.models import MarketSnapshot
from meme_finder.scoring.grades import RUN_POTENTIAL_BREAKPOINTS, clamp_score, grade_for

PHASES = ("already-ran", "declining", "breakout", "early-momentum", "accumulation", "unknown")

# Unknown creation time is treated as an old pair
UNKNOWN_AGE_HOURS = 999.0


@dataclass
class RunPotentialScore:
    score: int
    grade: str
    phase: str
    signals: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class PhaseInputs:
    """Derived metrics the phase rules look at."""
    change5m: float
    change1h: float
    change24h: float
    buy_ratio: float  # 24h
    buy_ratio_1h: float
    volume_to_mcap: float


# Order is load-bearing: later rules only apply when every earlier one failed.
PHASE_RULES: list[tuple[Callable[[PhaseInputs], bool], str]] = [
    (lambda m: m.change24h > 200 or (m.change24h > 100 and m.buy_ratio_1h < 0.4), "already-ran"),
    (lambda m: m.change1h < -15 and m.change24h > 30, "declining"),
    (lambda m: m.change5m > 5 and m.change1h > 10 and m.buy_ratio_1h > 0.55, "breakout"),
    (lambda m: 20 < m.change24h < 100 and m.buy_ratio > 0.5, "early-momentum"),
    (lambda m: m.volume_to_mcap > 0.2 and abs(m.change24h) < 30 and m.buy_ratio > 0.5, "accumulation"),
]


def classify_phase(inputs: PhaseInputs) -> str:
    """Return the first matching phase, or 'unknown'."""
    for predicate, phase in PHASE_RULES:
        if predicate(inputs):
            return phase
    return "unknown"


def calculate_run_potential(token: MarketSnapshot, now: int | None = None) -> RunPotentialScore:
    score = 50
    signals: list[str] = []
    warnings: list[str] = []

    change5m = token.price_change.m5
    change1h = token.price_change.h1
    change24h = token.price_change.h24

    volume24h = token.volume.h24
    liquidity = token.liquidity_usd
    market_cap = token.market_cap

    buy_ratio = token.txns.h24.buy_ratio()
    buy_ratio_1h = token.txns.h1.buy_ratio()
    total_txns_1h = token.txns.h1.total
    total_txns_5m = token.txns.m5.total

    age_hours = token.age_hours(now)
    if age_hours is None:
        age_hours = UNKNOWN_AGE_HOURS

    # ── Penalties: already pumped ────────────────────────────────────

    if change24h > 500:
        score -= 30
        warnings.append(f"Already up {change24h:.0f}% in 24h - likely topped")
    elif change24h > 200:
        score -= 20
        warnings.append(f"Up {change24h:.0f}% in 24h - may have already ran")
    elif change24h > 100:
        score -= 10
        warnings.append(f"Up {change24h:.0f}% in 24h - monitor for pullback")

    # Dumping from a recent high
    if change1h < -10 and change24h > 50:
        score -= 15
        warnings.append("Price dropping after pump - distribution phase")

    if buy_ratio_1h < 0.35:
        score -= 15
        warnings.append("Heavy selling pressure in last hour")
    elif buy_ratio_1h < 0.45:
        score -= 8
        warnings.append("More sells than buys recently")

    if market_cap > 100_000_000:
        score -= 20
        warnings.append("High market cap ($100M+) - limited upside")
    elif market_cap > 50_000_000:
        score -= 10
        warnings.append("Medium-high market cap ($50M+)")

    # ── Bonuses: accumulation ────────────────────────────────────────

    if buy_ratio > 0.65:
        score += 15
        signals.append(f"Strong accumulation ({buy_ratio * 100:.0f}% buys)")
    elif buy_ratio > 0.55:
        score += 8
        signals.append(f"Healthy buy pressure ({buy_ratio * 100:.0f}% buys)")

    if buy_ratio_1h > buy_ratio + 0.1 and buy_ratio_1h > 0.55:
        score += 10
        signals.append("Buy pressure accelerating")

    volume_to_mcap = volume24h / market_cap if market_cap > 0 else 0
    if volume_to_mcap > 0.3 and -20 < change24h < 50:
        score += 12
        signals.append("High volume with stable price - accumulation phase")

    mcap_to_liq = market_cap / liquidity if liquidity > 0 else 999
    if 3 <= mcap_to_liq <= 15:
        score += 10
        signals.append("Healthy MC/Liquidity ratio")
    elif mcap_to_liq > 50:
        score -= 10
        warnings.append("Low liquidity relative to market cap")

    # ── Bonuses: early momentum ──────────────────────────────────────

    if 10 < change24h < 80:
        score += 8
        signals.append("Moderate gains - room to run")

    if 2 < change5m < 20 and 0 < change1h < 50:
        score += 10
        signals.append("Fresh momentum building")

    if total_txns_5m > 10 and total_txns_1h > 50:
        score += 8
        signals.append("Transaction activity increasing")

    if volume24h > liquidity * 2 and change24h < 100:
        score += 10
        signals.append("Volume spike with price lagging - potential breakout")

    # ── Bonuses: sweet spot metrics ──────────────────────────────────

    if 500_000 <= market_cap <= 10_000_000:
        score += 12
        signals.append("Sweet spot market cap ($500K-$10M)")
    elif 100_000 <= market_cap < 500_000:
        score += 5
        signals.append("Micro cap - high risk/reward")

    if 12 <= age_hours <= 72:
        score += 8
        signals.append("Ideal age (12-72 hours) - past initial dump risk")
    elif age_hours < 6:
        score -= 5
        warnings.append("Very new - high rug risk")
    elif age_hours > 168:
        score -= 5
        warnings.append("Older token - may need catalyst")

    if 50_000 <= liquidity <= 500_000:
        score += 8
        signals.append("Solid liquidity base")
    elif liquidity < 10_000:
        score -= 10
        warnings.append("Very low liquidity - high slippage risk")

    if token.has_socials and token.has_website:
        score += 5
        signals.append("Has social presence")

    phase = classify_phase(PhaseInputs(
        change5m=change5m,
        change1h=change1h,
        change24h=change24h,
        buy_ratio=buy_ratio,
        buy_ratio_1h=buy_ratio_1h,
        volume_to_mcap=volume_to_mcap,
    ))

    score = int(clamp_score(score))
    return RunPotentialScore(
        score=score,
        grade=grade_for(score, RUN_POTENTIAL_BREAKPOINTS),
        phase=phase,
        signals=signals,
        warnings=warnings,
    )


# Scanner ordering: best phases first, then higher score
PHASE_ORDER: dict[str, int] = {
    "accumulation": 0,
    "early-momentum": 1,
    "breakout": 2,
    "unknown": 3,
    "declining": 4,
    "already-ran": 5,
}


def sort_by_run_potential(
    tokens: Iterable[MarketSnapshot],
    now: int | None = None,
) -> list[MarketSnapshot]:
    scored = [(calculate_run_potential(t, now), t) for t in tokens]
    scored.sort(key=lambda pair: (PHASE_ORDER[pair[0].phase], -pair[0].score))
    return [t for _, t in scored]
