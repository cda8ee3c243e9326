"""Tests for the Outcome Scheduler.

Uses an injected sleep and clock so passes run instantly and
deterministically. The snapshot fetcher is an AsyncMock.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from meme_finder.config import TrackerConfig
from meme_finder.models import MarketSnapshot
from meme_finder.scoring.run_potential import RunPotentialScore
from meme_finder.storage import MemoryStore
from meme_finder.tracking.predictions import PredictionStore
from meme_finder.tracking.scheduler import OutcomeScheduler
from meme_finder.utils.clock import HOUR_MS

NOW = 1_760_000_000_000
LATER = NOW + 2 * HOUR_MS
RUN = RunPotentialScore(score=80, grade="A", phase="accumulation")


def _snapshot(address: str, price: float = 1.0) -> MarketSnapshot:
    return MarketSnapshot(token_address=address, price_usd=price)


@pytest.fixture
def store():
    return PredictionStore(MemoryStore(), config=TrackerConfig())


def _seed(store, count: int) -> list[str]:
    ids = []
    for i in range(count):
        ids.append(store.record(_snapshot(f"TOK{i}"), RUN, 50, 50, now=NOW + i).id)
    return ids


def _scheduler(store, fetch, **kwargs) -> OutcomeScheduler:
    kwargs.setdefault("sleep", AsyncMock())
    kwargs.setdefault("clock", lambda: LATER)
    return OutcomeScheduler(store, fetch, **kwargs)


class TestCheckOutcomes:
    """A single scheduling pass."""

    @pytest.mark.asyncio
    async def test_batch_capped(self, store):
        """At most 5 predictions are checked per pass, oldest first."""
        _seed(store, 7)
        fetch = AsyncMock(side_effect=lambda address: _snapshot(address, 1.5))
        scheduler = _scheduler(store, fetch)

        result = await scheduler.check_outcomes()

        assert result == {"status": "OK", "due": 7, "checked": 5, "skipped": 0}
        assert [c.args[0] for c in fetch.call_args_list] == [f"TOK{i}" for i in range(5)]
        assert len(store.list_due_for_check(now=LATER)) == 2

    @pytest.mark.asyncio
    async def test_delay_between_fetches(self, store):
        _seed(store, 3)
        sleep = AsyncMock()
        scheduler = _scheduler(store, AsyncMock(side_effect=_snapshot), sleep=sleep)

        await scheduler.check_outcomes()

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_failed_fetch_skipped_and_retried(self, store):
        ids = _seed(store, 3)

        async def fetch(address):
            if address == "TOK1":
                raise ConnectionError("upstream down")
            return _snapshot(address, 1.2)

        scheduler = _scheduler(store, fetch)
        result = await scheduler.check_outcomes()

        assert result["checked"] == 2
        assert result["skipped"] == 1
        assert store.get(ids[1]).outcomes == []
        assert [p.id for p in store.list_due_for_check(now=LATER)] == [ids[1]]

    @pytest.mark.asyncio
    async def test_missing_snapshot_skipped(self, store):
        ids = _seed(store, 1)
        scheduler = _scheduler(store, AsyncMock(return_value=None))

        result = await scheduler.check_outcomes()

        assert result["skipped"] == 1
        assert store.get(ids[0]).outcomes == []

    @pytest.mark.asyncio
    async def test_outcome_recorded_with_clock_time(self, store):
        ids = _seed(store, 1)
        scheduler = _scheduler(store, AsyncMock(return_value=_snapshot("TOK0", 1.5)))

        await scheduler.check_outcomes()

        outcome = store.get(ids[0]).outcomes[0]
        assert outcome.checked_at == LATER
        assert outcome.price_change_percent == pytest.approx(50.0)
        assert scheduler.last_check == LATER

    @pytest.mark.asyncio
    async def test_nothing_due(self, store):
        fetch = AsyncMock()
        scheduler = _scheduler(store, fetch)

        result = await scheduler.check_outcomes()

        assert result == {"status": "OK", "due": 0, "checked": 0, "skipped": 0}
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_overlapping_pass_is_noop(self, store):
        """A trigger while a pass is in flight returns BUSY without fetching."""
        _seed(store, 1)
        gate = asyncio.Event()
        calls = []

        async def slow_fetch(address):
            calls.append(address)
            await gate.wait()
            return _snapshot(address, 1.1)

        scheduler = _scheduler(store, slow_fetch)
        first = asyncio.create_task(scheduler.check_outcomes())
        await asyncio.sleep(0)
        assert scheduler.is_checking

        second = await scheduler.check_outcomes()
        assert second["status"] == "BUSY"

        gate.set()
        result = await first
        assert result["checked"] == 1
        assert calls == ["TOK0"]
        assert not scheduler.is_checking

    @pytest.mark.asyncio
    async def test_flag_cleared_after_error(self, store, monkeypatch):
        _seed(store, 1)
        scheduler = _scheduler(store, AsyncMock())

        def broken(now=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(store, "list_due_for_check", broken)
        with pytest.raises(RuntimeError):
            await scheduler.check_outcomes()
        assert not scheduler.is_checking


class TestTimerLoop:
    @pytest.mark.asyncio
    async def test_run_checks_then_sleeps(self, store):
        _seed(store, 1)
        fetch = AsyncMock(side_effect=_snapshot)
        sleep = AsyncMock(side_effect=asyncio.CancelledError)
        scheduler = _scheduler(store, fetch, sleep=sleep, interval=1800)

        with pytest.raises(asyncio.CancelledError):
            await scheduler.run()

        fetch.assert_awaited_once_with("TOK0")
        sleep.assert_awaited_once_with(1800)

    @pytest.mark.asyncio
    async def test_start_and_stop(self, store):
        scheduler = _scheduler(store, AsyncMock(), sleep=asyncio.sleep, interval=3600)
        task = scheduler.start()
        assert scheduler.start() is task

        await asyncio.sleep(0)
        await scheduler.stop()

        assert task.cancelled()
        assert scheduler.last_check is not None
