"""Safety Score — how risky is it to hold this pair at all.

Starts neutral at 50 and applies additive deltas for liquidity depth,
trading activity, buy/sell balance, age, volatility, liquidity depth vs
market cap and social presence. Pure function: no I/O, never raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from meme_finder.models import MarketSnapshot
from meme_finder.scoring.grades import SAFETY_BREAKPOINTS, clamp_score, grade_for


@dataclass
class SafetyScore:
    """Safety score with its reasoning, in evaluation order."""
    score: int
    grade: str
    risks: list[str] = field(default_factory=list)
    positives: list[str] = field(default_factory=list)


def calculate_safety_score(token: MarketSnapshot, now: int | None = None) -> SafetyScore:
    risks: list[str] = []
    positives: list[str] = []
    score = 50

    # 1. Liquidity (max +20 / -20)
    liquidity = token.liquidity_usd
    if liquidity >= 100_000:
        score += 20
        positives.append("Strong liquidity (>$100K)")
    elif liquidity >= 50_000:
        score += 15
        positives.append("Good liquidity (>$50K)")
    elif liquidity >= 20_000:
        score += 10
        positives.append("Moderate liquidity (>$20K)")
    elif liquidity >= 10_000:
        score += 5
    elif liquidity < 5_000:
        score -= 20
        risks.append("Very low liquidity (<$5K) - easy to manipulate")
    else:
        score -= 10
        risks.append("Low liquidity (<$10K)")

    # 2. Volume to liquidity (max +10 / -10)
    volume24h = token.volume.h24
    vol_liq_ratio = volume24h / liquidity if liquidity > 0 else 0
    if vol_liq_ratio > 10:
        score += 10
        positives.append("High trading activity")
    elif vol_liq_ratio > 3:
        score += 5
        positives.append("Active trading")
    elif vol_liq_ratio < 0.1 and volume24h < 10_000:
        score -= 10
        risks.append("Very low trading activity")

    # 3. Buy/sell ratio (max +10 / -15), only with trades
    txns24h = token.txns.h24
    if txns24h.total > 0:
        buy_ratio = txns24h.buy_ratio()
        if buy_ratio >= 0.6:
            score += 10
            positives.append("More buyers than sellers")
        elif buy_ratio >= 0.45:
            score += 5
            positives.append("Balanced buy/sell ratio")
        elif buy_ratio < 0.3:
            score -= 15
            risks.append("Heavy selling pressure")
        elif buy_ratio < 0.4:
            score -= 5
            risks.append("More sellers than buyers")

    # 4. Age (max +10 / -5); unknown age counts as brand new
    age_hours = token.age_hours(now)
    if age_hours is None:
        age_hours = 0.0
    if age_hours > 168:
        score += 10
        positives.append("Established token (>7 days)")
    elif age_hours > 48:
        score += 5
        positives.append("Survived initial volatility")
    elif age_hours < 6:
        score -= 5
        risks.append("Very new token (<6 hours)")

    # 5. Price stability (max +5 / -10)
    change1h = abs(token.price_change.h1)
    change24h = abs(token.price_change.h24)
    if change1h > 50:
        score -= 10
        risks.append("Extreme volatility (>50% in 1h)")
    elif change24h > 200:
        score -= 5
        risks.append("Very high volatility")
    elif change1h < 10 and change24h < 30:
        score += 5
        positives.append("Relatively stable price")

    # 6. Market cap vs liquidity (max +5 / -10)
    market_cap = token.market_cap or token.fdv
    mc_liq_ratio = market_cap / liquidity if liquidity > 0 else 0
    if mc_liq_ratio > 100:
        score -= 10
        risks.append("Very low liquidity vs market cap - hard to exit")
    elif mc_liq_ratio > 50:
        score -= 5
        risks.append("Low liquidity relative to market cap")
    elif 0 < mc_liq_ratio < 20:
        score += 5
        positives.append("Good liquidity depth")

    # 7. Social presence (max +5)
    if token.has_socials and token.has_website:
        score += 5
        positives.append("Has website and socials")
    elif token.has_socials or token.has_website:
        score += 2
    else:
        risks.append("No social links")

    # 8. Boosted (informational only)
    if token.boosts_active > 0:
        positives.append(f"Boosted on DexScreener ({token.boosts_active})")

    score = int(clamp_score(score))
    return SafetyScore(
        score=score,
        grade=grade_for(score, SAFETY_BREAKPOINTS),
        risks=risks,
        positives=positives,
    )
