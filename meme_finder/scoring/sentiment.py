"""Social sentiment — on-chain activity as a sentiment proxy, optionally
blended with Reddit chatter.

calculate_social_metrics() works on the snapshot alone. combine_sentiment()
folds in a RedditSentiment (60% on-chain / 40% Reddit) when one is
available with at least one mention.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from meme_finder.models import MarketSnapshot, RedditSentiment
from meme_finder.scoring.grades import RUN_POTENTIAL_BREAKPOINTS, clamp_score, grade_for, round_half_up

SENTIMENT_BUCKETS: tuple[tuple[float, str], ...] = (
    (75, "very_bullish"),
    (60, "bullish"),
    (40, "neutral"),
    (25, "bearish"),
)

SENTIMENT_LABELS = {
    "very_bullish": "Very Bullish",
    "bullish": "Bullish",
    "neutral": "Neutral",
    "bearish": "Bearish",
    "very_bearish": "Very Bearish",
}


def sentiment_label(score: float) -> str:
    """5-bucket sentiment classification of a 0-100 score."""
    for minimum, label in SENTIMENT_BUCKETS:
        if score >= minimum:
            return label
    return "very_bearish"


@dataclass
class SocialMetrics:
    activity_score: int  # 0-100
    buy_pressure: int  # 0-100, % buys
    velocity_score: int  # 0-100
    has_twitter: bool
    has_telegram: bool
    has_discord: bool
    has_website: bool
    social_links_count: int
    sentiment_score: int  # 0-100
    overall_sentiment: str
    buzz_score: int  # 0-100
    signals: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class CombinedSentiment:
    social: SocialMetrics
    reddit: RedditSentiment | None
    overall_score: int
    overall_sentiment: str
    grade: str


def calculate_social_metrics(token: MarketSnapshot) -> SocialMetrics:
    signals: list[str] = []
    warnings: list[str] = []

    # ── Activity ─────────────────────────────────────────────────────
    txns24h = token.txns.h24.total
    txns1h = token.txns.h1.total
    txns5m = token.txns.m5.total

    activity_score = 0
    if txns24h > 5000:
        activity_score += 40
        signals.append("Very high transaction activity (5K+ txns/24h)")
    elif txns24h > 1000:
        activity_score += 30
        signals.append("High transaction activity (1K+ txns/24h)")
    elif txns24h > 200:
        activity_score += 20
    elif txns24h < 50:
        warnings.append("Low transaction activity")

    if txns1h > txns24h / 12:
        activity_score += 15
        signals.append("Activity accelerating in last hour")
    if txns5m > txns1h / 6:
        activity_score += 10
        signals.append("Activity spiking in last 5 minutes")

    volume24h = token.volume.h24
    if volume24h > 1_000_000:
        activity_score += 20
        signals.append("High volume ($1M+ daily)")
    elif volume24h > 100_000:
        activity_score += 10

    activity_score = min(activity_score, 100)

    # ── Buy pressure ─────────────────────────────────────────────────
    h24 = token.txns.h24
    buy_pressure = round_half_up(h24.buys / h24.total * 100) if h24.total > 0 else 50
    if buy_pressure > 65:
        signals.append(f"Strong buy pressure ({buy_pressure}% buys)")
    elif buy_pressure < 35:
        warnings.append(f"Heavy selling pressure ({100 - buy_pressure}% sells)")

    # ── Velocity ─────────────────────────────────────────────────────
    liquidity = token.liquidity_usd or 1
    volume_to_liq = volume24h / liquidity
    velocity_score = min(round_half_up(volume_to_liq * 20), 100)
    if volume_to_liq > 5:
        signals.append("Very high trading velocity")
    elif volume_to_liq > 2:
        signals.append("Active trading")
    elif volume_to_liq < 0.5:
        warnings.append("Low trading velocity")

    # ── Presence ─────────────────────────────────────────────────────
    social_types = {s.type for s in token.socials}
    has_twitter = "twitter" in social_types
    has_telegram = "telegram" in social_types
    has_discord = "discord" in social_types
    has_website = token.has_website
    social_links_count = len(token.socials) + len(token.websites)

    if has_twitter and has_telegram:
        signals.append("Active on Twitter and Telegram")
    if has_website:
        signals.append("Has official website")
    if social_links_count == 0:
        warnings.append("No social links found")

    # ── Buzz: links (max 30) + activity (max 40) + buy pressure (max 30)
    buzz_score = min(social_links_count * 8, 30)
    buzz_score += round_half_up(activity_score * 0.4)
    if buy_pressure > 50:
        buzz_score += round_half_up((buy_pressure - 50) * 0.6)
    buzz_score = min(buzz_score, 100)

    # ── Sentiment: weighted deltas from neutral ──────────────────────
    sentiment_score = 50
    sentiment_score += round_half_up((activity_score - 50) * 0.3)
    sentiment_score += round_half_up((buy_pressure - 50) * 0.4)
    sentiment_score += round_half_up((velocity_score - 50) * 0.2)
    sentiment_score += social_links_count * 2
    sentiment_score = int(clamp_score(sentiment_score))

    return SocialMetrics(
        activity_score=activity_score,
        buy_pressure=buy_pressure,
        velocity_score=velocity_score,
        has_twitter=has_twitter,
        has_telegram=has_telegram,
        has_discord=has_discord,
        has_website=has_website,
        social_links_count=social_links_count,
        sentiment_score=sentiment_score,
        overall_sentiment=sentiment_label(sentiment_score),
        buzz_score=buzz_score,
        signals=signals,
        warnings=warnings,
    )


def combine_sentiment(
    metrics: SocialMetrics,
    reddit: RedditSentiment | None = None,
) -> CombinedSentiment:
    """Blend on-chain sentiment with Reddit chatter when there is any."""
    overall = metrics.sentiment_score

    if reddit is not None and reddit.total_mentions > 0:
        overall = round_half_up(metrics.sentiment_score * 0.6 + reddit.trending_score * 0.4)
        if reddit.total_mentions > 10:
            overall += 5
        breakdown = reddit.sentiment_breakdown
        if breakdown.bearish > breakdown.bullish * 2:
            overall -= 10

    overall = int(clamp_score(overall))
    return CombinedSentiment(
        social=metrics,
        reddit=reddit,
        overall_score=overall,
        overall_sentiment=sentiment_label(overall),
        grade=grade_for(overall, RUN_POTENTIAL_BREAKPOINTS),
    )
