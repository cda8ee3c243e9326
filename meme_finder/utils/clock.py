"""Epoch-millisecond clock helpers.

Every timestamp the tracker persists (predicted_at, checked_at,
pair_created_at) is epoch milliseconds, matching what DexScreener
returns for pairCreatedAt.
"""
from __future__ import annotations

import time

HOUR_MS = 60 * 60 * 1000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def hours_between(start_ms: float, end_ms: float) -> float:
    """Elapsed hours from start_ms to end_ms (may be negative)."""
    return (end_ms - start_ms) / HOUR_MS
