"""DexScreener API client — free, no-auth market data for Solana pairs.

This is the market-data collaborator: the scanner uses it for fresh
candidates and the Outcome Scheduler uses get_token_by_address() for
re-checks. Raw pairs are normalized into MarketSnapshot.

Endpoints:
- /tokens/v1/solana/{addresses}: pairs for up to 30 comma-joined tokens
- /latest/dex/tokens/{address}:  legacy per-token pairs (fallback)
- /latest/dex/search?q=:         pair search
- /token-boosts/top/v1:          boosted tokens (trending)
- /token-profiles/latest/v1:     newly listed token profiles
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from meme_finder.clients.base import APIError, BaseClient
from meme_finder.models import MarketSnapshot
from meme_finder.utils.retry import with_retry

log = logging.getLogger("clients.dexscreener")

CHAIN = "solana"
MAX_BATCH = 30


def _as_list(data: Any, *keys: str) -> list[dict[str, Any]]:
    """DexScreener returns either a bare list or an object wrapping one."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def best_pair(pairs: list[MarketSnapshot]) -> MarketSnapshot | None:
    """The pair with the deepest liquidity."""
    if not pairs:
        return None
    return max(pairs, key=lambda p: p.liquidity_usd)


class DexScreenerClient:
    """DexScreener public API (~60 req/min, undocumented)."""

    BASE_URL = "https://api.dexscreener.com"

    def __init__(self, timeout: float = 12.0, transport: httpx.AsyncBaseTransport | None = None):
        self._client = BaseClient(
            base_url=self.BASE_URL,
            headers={
                "Accept": "application/json",
                "User-Agent": "MemeFinder/1.0",
            },
            rate_limit=1.0,
            timeout=timeout,
            provider_name="dexscreener",
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.close()

    @with_retry
    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._client.get(path, params=params, cache_ttl=30)

    async def get_token_pairs(self, address: str) -> list[MarketSnapshot]:
        """All Solana pairs for a token (empty on a non-success response)."""
        try:
            data = await self._get(f"/tokens/v1/{CHAIN}/{address}")
        except APIError as e:
            log.debug("Token pairs lookup failed for %s: %s", address, e)
            return []
        return [MarketSnapshot.from_dexscreener(p) for p in _as_list(data, "pairs")]

    async def get_token_by_address(self, address: str) -> MarketSnapshot | None:
        """Deepest-liquidity Solana pair for a token, or None if not found.

        Falls back to the legacy /latest/dex/tokens endpoint when the
        v1 endpoint answers with an error.
        """
        try:
            data = await self._get(f"/tokens/v1/{CHAIN}/{address}")
            pairs = _as_list(data, "pairs")
        except APIError as e:
            log.debug("v1 lookup failed for %s, trying legacy endpoint: %s", address, e)
            try:
                data = await self._get(f"/latest/dex/tokens/{address}")
            except APIError as fallback_error:
                log.warning("Token lookup failed for %s: %s", address, fallback_error)
                return None
            pairs = [p for p in _as_list(data, "pairs") if p.get("chainId") == CHAIN]

        return best_pair([MarketSnapshot.from_dexscreener(p) for p in pairs])

    async def search_pairs(self, query: str) -> list[MarketSnapshot]:
        """Search DEX pairs, Solana only."""
        data = await self._get("/latest/dex/search", params={"q": query})
        return [
            MarketSnapshot.from_dexscreener(p)
            for p in _as_list(data, "pairs")
            if p.get("chainId") == CHAIN
        ]

    async def _snapshots_for(self, addresses: list[str]) -> list[MarketSnapshot]:
        """Batch lookup; falls back to per-token lookups on failure."""
        if not addresses:
            return []
        joined = ",".join(addresses[:MAX_BATCH])
        try:
            data = await self._get(f"/tokens/v1/{CHAIN}/{joined}")
        except APIError as e:
            log.warning("Batch lookup failed, fetching individually: %s", e)
            snapshots = []
            for address in addresses[:10]:
                snapshot = await self.get_token_by_address(address)
                if snapshot is not None:
                    snapshots.append(snapshot)
            return snapshots
        return [MarketSnapshot.from_dexscreener(p) for p in _as_list(data, "pairs")]

    async def _solana_addresses(self, path: str, limit: int = 20) -> list[str]:
        data = await self._get(path)
        entries = _as_list(data, "data", "tokens")
        return [
            e["tokenAddress"] for e in entries
            if e.get("chainId") == CHAIN and e.get("tokenAddress")
        ][:limit]

    async def get_trending_tokens(self) -> list[MarketSnapshot]:
        """Boosted Solana tokens with full pair data."""
        return await self._snapshots_for(await self._solana_addresses("/token-boosts/top/v1"))

    async def get_latest_tokens(self) -> list[MarketSnapshot]:
        """Newly profiled Solana tokens with full pair data."""
        return await self._snapshots_for(await self._solana_addresses("/token-profiles/latest/v1"))
