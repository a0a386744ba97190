"""
Items API — Store Latency Benchmark
====================================

What:  Runs n sequential store operations and summarizes their latency.
Why:   Measures serialized round-trip cost to the record store from inside
       the service, which is what every other endpoint pays per call.
How:   One operation per iteration, strictly in sequence (no fan-out), timed
       with the injected monotonic timer.

Iteration outcomes:
    success → elapsed milliseconds (>= 0)
    failure → FAILED_TIMING (-1); logged, loop continues

Summary (successful timings only):
    avg_ms = arithmetic mean
    p50_ms = sorted[floor(count * 0.50)]
    p95_ms = sorted[floor(count * 0.95)]

    The percentiles are plain order statistics without interpolation. With
    5 samples p50 is the 3rd smallest and p95 is the maximum. This is the
    published behavior of the endpoint; keep it.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from itemsapi.services.store import RecordStore

logger = logging.getLogger(__name__)

FAILED_TIMING = -1

BENCH_SELECT_SQL = "SELECT id FROM items LIMIT 1"
BENCH_INSERT_SQL = (
    "INSERT INTO items (id, title, value, created_at) "
    "VALUES (:id, :title, :value, :created_at)"
)


@dataclass(frozen=True)
class LatencySummary:
    avg_ms: Optional[float] = None
    p50_ms: Optional[float] = None
    p95_ms: Optional[float] = None


@dataclass
class BenchmarkResult:
    n: int
    mode: str
    timings: List[float] = field(default_factory=list)
    summary: LatencySummary = field(default_factory=LatencySummary)

    @property
    def failures(self) -> int:
        return sum(1 for t in self.timings if t < 0)


def percentile(ordered: Sequence[float], fraction: float) -> float:
    """Order-statistic pick: ordered[floor(len * fraction)]."""
    index = math.floor(len(ordered) * fraction)
    return ordered[min(index, len(ordered) - 1)]


def summarize(timings: Sequence[float]) -> LatencySummary:
    """Mean and percentiles over the non-negative timings."""
    valid = sorted(t for t in timings if t >= 0)
    if not valid:
        return LatencySummary()
    return LatencySummary(
        avg_ms=sum(valid) / len(valid),
        p50_ms=percentile(valid, 0.5),
        p95_ms=percentile(valid, 0.95),
    )


class BenchmarkService:
    """Sequential latency probe against a RecordStore."""

    async def run(
        self,
        store: RecordStore,
        count: int,
        mode: str,
        new_id: Callable[[], str],
        now_ms: Callable[[], int],
        timer: Callable[[], float],
    ) -> BenchmarkResult:
        """
        Execute `count` operations of `mode` ("select" or "insert").

        Args:
            store:  Record store under test.
            count:  Iterations, already clamped (validation.parse_bench_count).
            mode:   "insert" writes a synthetic row; anything else reads.
            new_id: Id generator for synthetic rows.
            now_ms: Wall clock for synthetic titles and created_at.
            timer:  Monotonic clock in seconds.
        """
        timings: List[float] = []
        for i in range(count):
            started = timer()
            try:
                if mode == "insert":
                    stamp = now_ms()
                    await store.run(
                        BENCH_INSERT_SQL,
                        {
                            "id": new_id(),
                            "title": f"bench-{stamp}-{i}",
                            "value": i,
                            "created_at": stamp,
                        },
                    )
                else:
                    await store.all(BENCH_SELECT_SQL)
            except Exception as e:
                logger.error("Benchmark %s iteration %d failed: %s", mode, i, e)
                timings.append(FAILED_TIMING)
                continue
            elapsed_ms = (timer() - started) * 1000
            timings.append(round(max(elapsed_ms, 0.0), 3))

        result = BenchmarkResult(n=count, mode=mode, timings=timings, summary=summarize(timings))
        logger.info(
            "Benchmark %s n=%d: avg=%s p50=%s p95=%s failures=%d",
            mode,
            count,
            result.summary.avg_ms,
            result.summary.p50_ms,
            result.summary.p95_ms,
            result.failures,
        )
        return result


benchmark_service = BenchmarkService()
