"""Mock DexScreener pair payloads for testing."""

from __future__ import annotations

HOUR_MS = 60 * 60 * 1000

# Fixed "now" for every scoring test (epoch ms)
NOW = 1_760_000_000_000

# Quiet accumulation: 70% buys, volume building, price flat, should score A
ACCUMULATION_PAIR = {
    "chainId": "solana",
    "dexId": "raydium",
    "url": "https://dexscreener.com/solana/accpair111",
    "pairAddress": "ACCpair1111111111111111111111111111111111111",
    "baseToken": {
        "address": "ACCmint11111111111111111111111111111111111111",
        "name": "Accumulator",
        "symbol": "ACCUM",
    },
    "priceUsd": "0.0012",
    "txns": {
        "m5": {"buys": 3, "sells": 2},
        "h1": {"buys": 85, "sells": 15},
        "h6": {"buys": 300, "sells": 150},
        "h24": {"buys": 700, "sells": 300},
    },
    "volume": {"m5": 2_000, "h1": 40_000, "h6": 200_000, "h24": 700_000},
    "priceChange": {"m5": 0.5, "h1": 1.0, "h6": 3.0, "h24": 15.0},
    "liquidity": {"usd": 200_000, "base": 80_000_000, "quote": 500},
    "fdv": 2_000_000,
    "marketCap": 2_000_000,
    "pairCreatedAt": NOW - 24 * HOUR_MS,
    "info": {
        "socials": [{"type": "twitter", "url": "https://x.com/accum"}],
        "websites": [{"label": "Website", "url": "https://accum.xyz"}],
    },
    "boosts": {"active": 2},
}

# Already pumped 250% with buyers still piling in
ALREADY_RAN_PAIR = {
    "chainId": "solana",
    "dexId": "raydium",
    "pairAddress": "RANpair1111111111111111111111111111111111111",
    "baseToken": {
        "address": "RANmint11111111111111111111111111111111111111",
        "name": "Already Ran",
        "symbol": "RAN",
    },
    "priceUsd": "0.05",
    "txns": {
        "m5": {"buys": 20, "sells": 5},
        "h1": {"buys": 90, "sells": 10},
        "h6": {"buys": 500, "sells": 300},
        "h24": {"buys": 600, "sells": 400},
    },
    "volume": {"m5": 10_000, "h1": 90_000, "h6": 400_000, "h24": 1_500_000},
    "priceChange": {"m5": 1.0, "h1": -5.0, "h6": 40.0, "h24": 250.0},
    "liquidity": {"usd": 150_000},
    "fdv": 8_000_000,
    "marketCap": 8_000_000,
    "pairCreatedAt": NOW - 30 * HOUR_MS,
    "info": {"socials": [], "websites": []},
}

# Thin, brand new, sellers in control
DUMPING_PAIR = {
    "chainId": "solana",
    "dexId": "pumpswap",
    "pairAddress": "DMPpair1111111111111111111111111111111111111",
    "baseToken": {
        "address": "DMPmint11111111111111111111111111111111111111",
        "name": "Dumper",
        "symbol": "DUMP",
    },
    "priceUsd": "0.00001",
    "txns": {
        "m5": {"buys": 0, "sells": 4},
        "h1": {"buys": 5, "sells": 30},
        "h6": {"buys": 20, "sells": 80},
        "h24": {"buys": 20, "sells": 80},
    },
    "volume": {"m5": 50, "h1": 400, "h6": 900, "h24": 1_000},
    "priceChange": {"m5": -8.0, "h1": -60.0, "h6": -70.0, "h24": -75.0},
    "liquidity": {"usd": 3_000},
    "fdv": 900_000,
    "marketCap": 900_000,
    "pairCreatedAt": NOW - 2 * HOUR_MS,
}

# DexScreener sends nulls for pairs it has not indexed fully
SPARSE_PAIR = {
    "chainId": "solana",
    "dexId": "meteora",
    "pairAddress": "SPRpair1111111111111111111111111111111111111",
    "baseToken": {
        "address": "SPRmint11111111111111111111111111111111111111",
        "name": "Sparse",
        "symbol": "SPR",
    },
    "priceUsd": None,
    "txns": None,
    "volume": {"h24": None},
    "priceChange": None,
    "liquidity": None,
    "fdv": None,
    "marketCap": None,
    "pairCreatedAt": None,
    "info": None,
}


def pair_with(base: dict, **overrides) -> dict:
    """Shallow-copy a pair with top-level overrides."""
    pair = dict(base)
    pair.update(overrides)
    return pair


# Same token on two pools; the deeper one should win
SHALLOW_POOL = pair_with(ACCUMULATION_PAIR, pairAddress="SHALLOWpool", liquidity={"usd": 20_000})
DEEP_POOL = pair_with(ACCUMULATION_PAIR, pairAddress="DEEPpool", liquidity={"usd": 450_000})
ETH_POOL = pair_with(ACCUMULATION_PAIR, chainId="ethereum", pairAddress="ETHpool", liquidity={"usd": 9_000_000})

TOKEN_BOOSTS_RESPONSE = [
    {"chainId": "solana", "tokenAddress": "ACCmint11111111111111111111111111111111111111", "amount": 500},
    {"chainId": "ethereum", "tokenAddress": "0xdeadbeef", "amount": 900},
    {"chainId": "solana", "tokenAddress": "RANmint11111111111111111111111111111111111111", "amount": 100},
]
