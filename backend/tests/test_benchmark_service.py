"""
Items API — Benchmark Service Tests
====================================

What:  Tests for the latency summary and the sequential benchmark loop.
How:   A scripted timer makes each iteration take a known number of
       milliseconds; stores are mocks or the SQLite fixture.

What we test:
    ✅ order-statistic percentiles (p50 of 5 = 3rd smallest, p95 of 5 = max)
    ✅ failures recorded as -1, excluded from stats, kept in timings
    ✅ all-failed run reports null stats
    ✅ insert mode writes n synthetic rows
"""

import itertools

import pytest

from itemsapi.services.benchmark_service import (
    BENCH_SELECT_SQL,
    FAILED_TIMING,
    BenchmarkService,
    percentile,
    summarize,
)


def scripted_timer(durations_ms):
    """Timer whose consecutive start/stop pairs differ by the given durations."""
    ticks = []
    now = 0.0
    for duration in durations_ms:
        ticks.extend([now, now + duration / 1000])
        now += 1.0
    return iter(ticks).__next__


class TestSummarize:
    def test_five_samples(self):
        summary = summarize([5.0, 1.0, 4.0, 2.0, 3.0])
        assert summary.avg_ms == 3.0
        # floor(5 * 0.5) = 2 → third smallest
        assert summary.p50_ms == 3.0
        # floor(5 * 0.95) = 4 → the maximum
        assert summary.p95_ms == 5.0

    def test_twenty_samples(self):
        summary = summarize([float(v) for v in range(1, 21)])
        assert summary.p50_ms == 11.0
        assert summary.p95_ms == 20.0

    def test_failures_excluded(self):
        summary = summarize([FAILED_TIMING, 2.0, FAILED_TIMING, 4.0])
        assert summary.avg_ms == 3.0
        assert summary.p50_ms == 4.0

    def test_zero_timing_counts_as_success(self):
        assert summarize([0.0]).p50_ms == 0.0

    def test_no_successes_gives_nulls(self):
        summary = summarize([FAILED_TIMING, FAILED_TIMING])
        assert summary.avg_ms is None
        assert summary.p50_ms is None
        assert summary.p95_ms is None

    def test_percentile_single_sample(self):
        assert percentile([7.0], 0.95) == 7.0


class TestBenchmarkService:
    def setup_method(self):
        self.service = BenchmarkService()

    @pytest.mark.asyncio
    async def test_select_mode(self, mock_store):
        result = await self.service.run(
            mock_store,
            count=5,
            mode="select",
            new_id=lambda: "x",
            now_ms=lambda: 1,
            timer=scripted_timer([3, 1, 5, 2, 4]),
        )

        assert result.timings == [3.0, 1.0, 5.0, 2.0, 4.0]
        assert result.summary.p50_ms == 3.0
        assert result.failures == 0
        assert mock_store.all.await_count == 5
        mock_store.all.assert_awaited_with(BENCH_SELECT_SQL)
        mock_store.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failures_use_sentinel_and_continue(self, mock_store):
        mock_store.all.side_effect = [[], RuntimeError("boom"), []]
        timer = itertools.count(0.0, 0.002).__next__

        result = await self.service.run(
            mock_store, count=3, mode="select", new_id=lambda: "x", now_ms=lambda: 1, timer=timer
        )

        assert len(result.timings) == 3
        assert result.timings[1] == FAILED_TIMING
        assert result.failures == 1
        assert result.summary.avg_ms is not None

    @pytest.mark.asyncio
    async def test_all_failed(self, failing_store):
        store = failing_store
        result = await self.service.run(
            store, count=4, mode="insert", new_id=lambda: "x", now_ms=lambda: 1, timer=lambda: 0.0
        )

        assert result.timings == [FAILED_TIMING] * 4
        assert result.summary.p95_ms is None
        assert store.calls == 4

    @pytest.mark.asyncio
    async def test_insert_mode_writes_rows(self, sqlite_store):
        ids = (f"bench-id-{n}" for n in itertools.count())
        result = await self.service.run(
            sqlite_store,
            count=3,
            mode="insert",
            new_id=lambda: next(ids),
            now_ms=lambda: 1_700_000_000_000,
            timer=itertools.count(0.0, 0.001).__next__,
        )

        assert result.failures == 0
        rows = await sqlite_store.all("SELECT title, value FROM items ORDER BY value")
        assert [r["value"] for r in rows] == [0, 1, 2]
        assert rows[2]["title"] == "bench-1700000000000-2"
