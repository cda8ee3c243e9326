"""Reddit client — social-mentions collaborator for the sentiment blend.

Searches a handful of crypto subreddits for a token's symbol and name,
classifies each post by keyword counts, and rolls the mentions up into a
0-100 trending score. Individual request failures are skipped; a search
that fails everywhere yields an empty RedditSentiment.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from meme_finder.clients.base import APIError, BaseClient
from meme_finder.config import reddit_user_agent
from meme_finder.models import RedditMention, RedditSentiment, SentimentBreakdown
from meme_finder.scoring.grades import round_half_up
from meme_finder.utils.clock import HOUR_MS, now_ms
from meme_finder.utils.rate_limiter import get_rate_limiter

log = logging.getLogger("clients.reddit")

CRYPTO_SUBREDDITS = [
    "CryptoMoonShots",
    "solana",
    "SolanaMemeCoins",
    "memecoin",
    "CryptoCurrency",
    "altcoin",
    "SatoshiStreetBets",
    "defi",
]
# Searched per token, to stay under Reddit's anonymous rate limit
SUBREDDITS_PER_SEARCH = 4
MAX_MENTIONS = 20

BULLISH_KEYWORDS = [
    "moon", "bullish", "pump", "gem", "rocket", "100x", "1000x",
    "buy", "buying", "accumulate", "load", "bags", "lfg", "wagmi",
    "early", "undervalued", "potential", "next", "huge", "massive",
    "breakout", "green", "up", "gains", "profit", "winner",
]

BEARISH_KEYWORDS = [
    "rug", "scam", "dump", "sell", "selling", "bearish", "dead",
    "avoid", "warning", "honeypot", "fake", "fraud", "loss",
    "down", "crash", "plummet", "exit", "rugpull", "ponzi",
    "careful", "suspicious", "red flag", "ngmi",
]


def classify_sentiment(text: str) -> str:
    """bullish/bearish when one side's keyword count leads by 2+, else neutral."""
    lower = text.lower()
    bullish = sum(1 for k in BULLISH_KEYWORDS if k in lower)
    bearish = sum(1 for k in BEARISH_KEYWORDS if k in lower)
    if bullish > bearish + 1:
        return "bullish"
    if bearish > bullish + 1:
        return "bearish"
    return "neutral"


def trending_score(
    mentions: list[RedditMention],
    breakdown: SentimentBreakdown,
    avg_score: float,
    avg_comments: float,
    now: int,
) -> int:
    """0-100: count (30) + recency (25) + bullish share (25) + engagement (20)."""
    score = min(len(mentions) * 3, 30)

    recent = sum(1 for m in mentions if now - m.timestamp < 24 * HOUR_MS)
    score += min(recent * 5, 25)

    total = breakdown.bullish + breakdown.bearish + breakdown.neutral
    if total > 0:
        score += round_half_up(breakdown.bullish / total * 25)

    score += min(round_half_up(avg_score / 10) + round_half_up(avg_comments / 5), 20)
    return min(score, 100)


def summarize_mentions(
    mentions: list[RedditMention],
    subreddit_counts: dict[str, int],
    now: int,
) -> RedditSentiment:
    mentions = sorted(mentions, key=lambda m: m.timestamp, reverse=True)
    breakdown = SentimentBreakdown(
        bullish=sum(1 for m in mentions if m.sentiment == "bullish"),
        bearish=sum(1 for m in mentions if m.sentiment == "bearish"),
        neutral=sum(1 for m in mentions if m.sentiment == "neutral"),
    )
    avg_score = sum(m.score for m in mentions) / len(mentions) if mentions else 0.0
    avg_comments = sum(m.comments for m in mentions) / len(mentions) if mentions else 0.0

    return RedditSentiment(
        mentions=mentions[:MAX_MENTIONS],
        total_mentions=len(mentions),
        avg_score=avg_score,
        avg_comments=avg_comments,
        sentiment_breakdown=breakdown,
        trending_score=trending_score(mentions, breakdown, avg_score, avg_comments, now),
        subreddit_breakdown=subreddit_counts,
    )


def _posts(data: Any) -> list[dict[str, Any]]:
    children = (data or {}).get("data", {}).get("children", [])
    return [c.get("data", {}) for c in children]


class RedditClient:
    """Anonymous Reddit JSON search."""

    def __init__(self, user_agent: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self._client = BaseClient(
            base_url="https://www.reddit.com",
            headers={"User-Agent": user_agent or reddit_user_agent()},
            rate_limit=1.0,
            timeout=10.0,
            max_retries=1,
            provider_name="reddit",
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.close()

    async def _search(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        await get_rate_limiter().wait_if_needed("reddit", min_interval_sec=1.0)
        data = await self._client.get(path, params=params, cache_ttl=300)
        return _posts(data)

    async def search_mentions(
        self,
        symbol: str,
        name: str,
        address: str | None = None,
        now: int | None = None,
    ) -> RedditSentiment:
        """Mentions of a token across crypto subreddits over the past week.

        Searches by symbol and by name. `address` is part of the collaborator
        interface but is not sent as a query.
        """
        now = now if now is not None else now_ms()
        queries = [q for q in (symbol, name) if q]
        terms = [q.lower() for q in queries]

        mentions: dict[str, RedditMention] = {}
        subreddit_counts: dict[str, int] = {}

        for subreddit in CRYPTO_SUBREDDITS[:SUBREDDITS_PER_SEARCH]:
            for query in queries:
                try:
                    posts = await self._search(
                        f"/r/{subreddit}/search.json",
                        {"q": query, "restrict_sr": "on", "sort": "new", "limit": 10, "t": "week"},
                    )
                except (APIError, httpx.HTTPError) as e:
                    log.warning("Reddit search r/%s %r failed: %s", subreddit, query, e)
                    continue

                for post in posts:
                    post_id = post.get("id")
                    if not post_id or post_id in mentions:
                        continue
                    title = post.get("title") or ""
                    body = post.get("selftext") or ""
                    text = f"{title} {body}".lower()
                    # Search is fuzzy; keep only posts that name the token
                    if not any(term in text for term in terms):
                        continue

                    sub = post.get("subreddit", subreddit)
                    mentions[post_id] = RedditMention(
                        id=post_id,
                        title=title,
                        content=body[:200],
                        subreddit=sub,
                        author=post.get("author") or "",
                        score=int(post.get("score") or 0),
                        comments=int(post.get("num_comments") or 0),
                        timestamp=int(float(post.get("created_utc") or 0) * 1000),
                        url=f"https://reddit.com{post.get('permalink', '')}",
                        sentiment=classify_sentiment(text),
                        upvote_ratio=float(post.get("upvote_ratio") or 0.0),
                    )
                    subreddit_counts[sub] = subreddit_counts.get(sub, 0) + 1

        return summarize_mentions(list(mentions.values()), subreddit_counts, now)

    async def quick_sentiment(self, symbol: str) -> dict[str, Any]:
        """Site-wide check of the last day's posts for a symbol."""
        try:
            posts = await self._search(
                "/search.json",
                {"q": symbol, "sort": "new", "limit": 5, "t": "day"},
            )
        except (APIError, httpx.HTTPError) as e:
            log.warning("Quick Reddit check for %s failed: %s", symbol, e)
            return {"has_mentions": False, "recent_mentions": 0, "sentiment": "unknown"}

        if not posts:
            return {"has_mentions": False, "recent_mentions": 0, "sentiment": "unknown"}

        labels = [classify_sentiment(f"{p.get('title', '')} {p.get('selftext', '')}") for p in posts]
        bullish = labels.count("bullish")
        bearish = labels.count("bearish")
        if bullish > bearish:
            overall = "bullish"
        elif bearish > bullish:
            overall = "bearish"
        else:
            overall = "neutral"
        return {"has_mentions": True, "recent_mentions": len(posts), "sentiment": overall}
