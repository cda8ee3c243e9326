"""Market data shapes consumed by the scorers and the tracker.

MarketSnapshot is the normalized view of one DexScreener pair. Every
numeric field defaults to 0 so scorers never have to guard for missing
data. RedditSentiment is the social-mentions collaborator's output.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from meme_finder.utils.clock import hours_between, now_ms


def _safe_float(val: Any, default: float = 0.0) -> float:
    """Null-safe float conversion; DexScreener sends null or strings."""
    if val is None:
        return default
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _safe_int(val: Any, default: int = 0) -> int:
    if val is None:
        return default
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


class TxnCounts(BaseModel):
    """Buy/sell transaction counts over one window."""

    buys: int = 0
    sells: int = 0

    @property
    def total(self) -> int:
        return self.buys + self.sells

    def buy_ratio(self, default: float = 0.5) -> float:
        """Fraction of transactions that were buys, or default if none."""
        return self.buys / self.total if self.total > 0 else default


class WindowTxns(BaseModel):
    m5: TxnCounts = Field(default_factory=TxnCounts)
    h1: TxnCounts = Field(default_factory=TxnCounts)
    h6: TxnCounts = Field(default_factory=TxnCounts)
    h24: TxnCounts = Field(default_factory=TxnCounts)


class WindowValues(BaseModel):
    """A value sampled over the rolling 5m/1h/6h/24h windows."""

    m5: float = 0.0
    h1: float = 0.0
    h6: float = 0.0
    h24: float = 0.0


class SocialLink(BaseModel):
    type: str = ""
    url: str = ""


class MarketSnapshot(BaseModel):
    """Normalized state of one tradeable pair at fetch time."""

    token_address: str
    symbol: str = ""
    name: str = ""
    chain_id: str = "solana"
    dex_id: str = ""
    pair_address: str = ""
    url: str = ""

    price_usd: float = 0.0
    market_cap: float = 0.0
    fdv: float = 0.0
    liquidity_usd: float = 0.0

    volume: WindowValues = Field(default_factory=WindowValues)
    price_change: WindowValues = Field(default_factory=WindowValues)
    txns: WindowTxns = Field(default_factory=WindowTxns)

    pair_created_at: int | None = None  # epoch ms
    socials: list[SocialLink] = Field(default_factory=list)
    websites: list[SocialLink] = Field(default_factory=list)
    boosts_active: int = 0

    def age_hours(self, now: int | None = None) -> float | None:
        """Hours since the pair was created, None when unknown."""
        if not self.pair_created_at:
            return None
        return max(0.0, hours_between(self.pair_created_at, now if now is not None else now_ms()))

    @property
    def has_socials(self) -> bool:
        return len(self.socials) > 0

    @property
    def has_website(self) -> bool:
        return len(self.websites) > 0

    @classmethod
    def from_dexscreener(cls, pair: dict[str, Any]) -> MarketSnapshot:
        """Build a snapshot from a raw DexScreener pair object."""
        base = pair.get("baseToken") or {}
        txns = pair.get("txns") or {}
        volume = pair.get("volume") or {}
        change = pair.get("priceChange") or {}
        liquidity = pair.get("liquidity") or {}
        info = pair.get("info") or {}
        boosts = pair.get("boosts") or {}

        def window_txns(key: str) -> TxnCounts:
            w = txns.get(key) or {}
            return TxnCounts(buys=_safe_int(w.get("buys")), sells=_safe_int(w.get("sells")))

        def window_values(src: dict[str, Any]) -> WindowValues:
            return WindowValues(**{k: _safe_float(src.get(k)) for k in ("m5", "h1", "h6", "h24")})

        created = pair.get("pairCreatedAt")
        return cls(
            token_address=base.get("address", ""),
            symbol=base.get("symbol", ""),
            name=base.get("name", ""),
            chain_id=pair.get("chainId", "solana"),
            dex_id=pair.get("dexId", ""),
            pair_address=pair.get("pairAddress", ""),
            url=pair.get("url", ""),
            price_usd=_safe_float(pair.get("priceUsd")),
            market_cap=_safe_float(pair.get("marketCap")),
            fdv=_safe_float(pair.get("fdv")),
            liquidity_usd=_safe_float(liquidity.get("usd")),
            volume=window_values(volume),
            price_change=window_values(change),
            txns=WindowTxns(
                m5=window_txns("m5"),
                h1=window_txns("h1"),
                h6=window_txns("h6"),
                h24=window_txns("h24"),
            ),
            pair_created_at=_safe_int(created) if created else None,
            socials=[
                SocialLink(type=s.get("type", ""), url=s.get("url", ""))
                for s in info.get("socials") or []
            ],
            websites=[
                SocialLink(type=w.get("label", ""), url=w.get("url", ""))
                for w in info.get("websites") or []
            ],
            boosts_active=_safe_int(boosts.get("active")),
        )


class RedditMention(BaseModel):
    """A single Reddit post mentioning a token."""

    id: str
    title: str = ""
    content: str = ""
    subreddit: str = ""
    author: str = ""
    score: int = 0
    comments: int = 0
    timestamp: int = 0  # epoch ms
    url: str = ""
    sentiment: str = "neutral"  # bullish | bearish | neutral
    upvote_ratio: float = 0.0


class SentimentBreakdown(BaseModel):
    bullish: int = 0
    bearish: int = 0
    neutral: int = 0


class RedditSentiment(BaseModel):
    """Aggregated Reddit chatter for a token."""

    mentions: list[RedditMention] = Field(default_factory=list)
    total_mentions: int = 0
    avg_score: float = 0.0
    avg_comments: float = 0.0
    sentiment_breakdown: SentimentBreakdown = Field(default_factory=SentimentBreakdown)
    trending_score: int = 0  # 0-100
    subreddit_breakdown: dict[str, int] = Field(default_factory=dict)
