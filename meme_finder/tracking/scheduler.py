"""Outcome Scheduler — re-fetches due predictions and records outcomes.

One pass takes up to `batch_size` due predictions, fetches each token's
current snapshot serially with a fixed pause between fetches (a crude
upstream rate limit), and appends an outcome. A failed or empty fetch is
skipped; the prediction stays due and is retried next pass.

Passes run on a timer (`run`/`start`) or on demand (`check_outcomes`).
A single in-flight flag turns an overlapping trigger into a no-op.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from meme_finder.models import MarketSnapshot
from meme_finder.tracking.predictions import PredictionStore
from meme_finder.utils.clock import now_ms

log = logging.getLogger("tracking.scheduler")

SnapshotFetcher = Callable[[str], Awaitable["MarketSnapshot | None"]]


class OutcomeScheduler:
    """Drives outcome checks for the prediction log."""

    def __init__(
        self,
        store: PredictionStore,
        fetch_snapshot: SnapshotFetcher,
        batch_size: int | None = None,
        fetch_delay: float | None = None,
        interval: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], int] = now_ms,
    ):
        cfg = store.config
        self.store = store
        self.fetch_snapshot = fetch_snapshot
        self.batch_size = batch_size if batch_size is not None else cfg.batch_size
        self.fetch_delay = fetch_delay if fetch_delay is not None else cfg.fetch_delay_seconds
        self.interval = interval if interval is not None else cfg.check_interval_seconds
        self._sleep = sleep
        self._clock = clock
        self.is_checking = False
        self.last_check: int | None = None
        self._task: asyncio.Task[None] | None = None

    async def _check_one(self, prediction_id: str, token_address: str) -> bool:
        """Fetch and record one outcome. Returns False when skipped."""
        try:
            snapshot = await self.fetch_snapshot(token_address)
        except Exception as e:
            log.warning("Fetch failed for %s, will retry next pass: %s", token_address, e)
            return False

        if snapshot is None:
            log.warning("No market data for %s, will retry next pass", token_address)
            return False

        outcome = self.store.append_outcome(prediction_id, snapshot, now=self._clock())
        if outcome is None:
            return False
        log.debug("Outcome for %s at %.1fh: %+.1f%%",
                  prediction_id, outcome.hours_after_prediction, outcome.price_change_percent)
        return True

    async def check_outcomes(self) -> dict[str, Any]:
        """Run one scheduling pass over the due predictions."""
        if self.is_checking:
            return {"status": "BUSY", "due": 0, "checked": 0, "skipped": 0}

        self.is_checking = True
        try:
            due = self.store.list_due_for_check(now=self._clock())
            batch = due[:self.batch_size]
            checked = 0
            skipped = 0

            for i, prediction in enumerate(batch):
                if i > 0:
                    await self._sleep(self.fetch_delay)
                if await self._check_one(prediction.id, prediction.token_address):
                    checked += 1
                else:
                    skipped += 1

            self.last_check = self._clock()
            if batch:
                log.info("Outcome pass: %d due, %d checked, %d skipped", len(due), checked, skipped)
            return {"status": "OK", "due": len(due), "checked": checked, "skipped": skipped}
        finally:
            self.is_checking = False

    async def run(self, interval: float | None = None) -> None:
        """Check immediately, then every `interval` seconds until cancelled."""
        interval = interval if interval is not None else self.interval
        while True:
            try:
                await self.check_outcomes()
            except Exception:
                log.exception("Outcome pass failed")
            await self._sleep(interval)

    def start(self) -> asyncio.Task[None]:
        """Start the timer loop as a background task on the running loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
