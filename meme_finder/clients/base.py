"""Shared async HTTP plumbing for the DexScreener and Reddit clients.

BaseClient wraps one httpx.AsyncClient and adds:
- a token bucket so a client never exceeds its provider's request rate
- a TTL cache for idempotent GETs (market data is only ~30s fresh anyway)
- retry with exponential backoff on 429, 5xx and connection failures
- APIError carrying the provider name and whether a retry could help

Only GET is needed: both providers are read-only public JSON APIs.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

log = logging.getLogger("clients.base")


class APIError(Exception):
    """A provider answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: int = 0, provider: str = "", retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider
        self.retryable = retryable


@dataclass
class TokenBucket:
    """Refills at `rate` tokens/sec up to `rate` tokens; one request costs one token."""

    rate: float
    _tokens: float = field(init=False)
    _stamp: float = field(init=False)

    def __post_init__(self) -> None:
        self._tokens = self.rate
        self._stamp = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(self.rate, self._tokens + (now - self._stamp) * self.rate)
        self._stamp = now

    def reserve(self) -> float:
        """Take a token. Returns how long to wait before using it."""
        self._refill()
        self._tokens -= 1.0
        if self._tokens >= 0:
            return 0.0
        return -self._tokens / self.rate


class ResponseCache:
    """GET responses keyed by path and params, expiring after a TTL."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[float, Any]] = {}

    @staticmethod
    def key(path: str, params: dict[str, Any] | None) -> str:
        if not params:
            return path
        query = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return f"{path}?{query}"

    def get(self, key: str) -> Any | None:
        hit = self._entries.get(key)
        if hit is None:
            return None
        expires_at, data = hit
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return data

    def put(self, key: str, data: Any, ttl: float) -> None:
        self._entries[key] = (time.monotonic() + ttl, data)

    def clear(self) -> None:
        self._entries.clear()


def _check_status(response: httpx.Response, provider: str) -> None:
    """Raise APIError for non-2xx responses; 429 and 5xx are retryable."""
    status = response.status_code
    if status < 400:
        return
    if status == 429:
        raise APIError(f"Rate limited by {provider}", status_code=status, provider=provider, retryable=True)
    if status >= 500:
        raise APIError(f"{provider} server error {status}", status_code=status, provider=provider, retryable=True)
    raise APIError(
        f"{provider} rejected request: {status} {response.text[:200]}",
        status_code=status,
        provider=provider,
    )


class BaseClient:
    """Rate-limited, caching, retrying GET client for one provider.

    Usage:
        client = BaseClient(
            base_url="https://api.dexscreener.com",
            rate_limit=1.0,
            provider_name="dexscreener",
        )
        pairs = await client.get("/latest/dex/search", params={"q": "bonk"}, cache_ttl=30)
    """

    def __init__(
        self,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        rate_limit: float = 10.0,
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        backoff_max: float = 60.0,
        backoff_multiplier: float = 2.0,
        provider_name: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.provider_name = provider_name
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.backoff_multiplier = backoff_multiplier
        self._bucket = TokenBucket(rate=rate_limit)
        self._cache = ResponseCache()
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers or {},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self) -> None:
        await self._http.aclose()

    def _backoff(self, attempt: int, response: httpx.Response | None) -> float:
        # Honour Retry-After on 429 when the provider sends one
        if response is not None and response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            if retry_after and retry_after.isdigit():
                return min(float(retry_after), self.backoff_max)
        return min(self.backoff_base * self.backoff_multiplier ** attempt, self.backoff_max)

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        cache_ttl: float = 0,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET and decode JSON, serving from cache when `cache_ttl` > 0."""
        key = ResponseCache.key(path, params)
        if cache_ttl > 0:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        data = await self._get_with_retry(path, params, headers)
        if cache_ttl > 0:
            self._cache.put(key, data, cache_ttl)
        return data

    async def _get_with_retry(
        self,
        path: str,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> Any:
        attempt = 0
        while True:
            wait = self._bucket.reserve()
            if wait > 0:
                await asyncio.sleep(wait)

            response: httpx.Response | None = None
            try:
                response = await self._http.get(path, params=params, headers=headers)
                _check_status(response, self.provider_name)
                return response.json()
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                error = APIError(f"Cannot reach {self.provider_name}: {e}", provider=self.provider_name, retryable=True)
            except APIError as e:
                if not e.retryable:
                    raise
                error = e

            if attempt >= self.max_retries:
                raise error
            delay = self._backoff(attempt, response)
            log.debug("%s %s failed (%s), retry %d in %.1fs",
                      self.provider_name, path, error, attempt + 1, delay)
            await asyncio.sleep(delay)
            attempt += 1
