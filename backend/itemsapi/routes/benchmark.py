"""
Items API — Benchmark Route
============================

What:  GET /benchmark?n=<count>&mode=select|insert
Why:   Exposes BenchmarkService over HTTP for quick latency checks against
       whatever store the service is bound to.

Both parameters are coerced, never rejected: `n` falls back to 20 and is
clamped to [1, 1000] and the response reports the count actually run.
`mode` is lowercased and echoed as requested; anything but "insert" runs
selects, so `mode=update` reports "update" over a select loop.
"""

import logging

from fastapi import APIRouter, Depends, Query

from itemsapi.dependencies import Bindings, get_bindings
from itemsapi.responses import json_response
from itemsapi.schemas.item import BenchmarkResponse, StoreErrorResponse
from itemsapi.services.benchmark_service import benchmark_service
from itemsapi.validation import parse_bench_count, parse_bench_mode

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Benchmark"])


@router.get(
    "/benchmark",
    summary="Sequential store latency benchmark",
    responses={200: {"model": BenchmarkResponse}, 500: {"model": StoreErrorResponse}},
)
async def run_benchmark(
    n: str | None = Query(default=None, description="Iterations (1-1000, default 20)"),
    mode: str | None = Query(default=None, description="select (default) or insert"),
    bindings: Bindings = Depends(get_bindings),
):
    count = parse_bench_count(n)
    kind = parse_bench_mode(mode)
    for name, outcome in (("n", count), ("mode", kind)):
        if outcome.defaulted:
            logger.debug("benchmark %s defaulted to %r (%s)", name, outcome.value, outcome.reason)

    result = await benchmark_service.run(
        bindings.require_store(),
        count=count.value,
        mode=kind.value,
        new_id=bindings.new_id,
        now_ms=bindings.now_ms,
        timer=bindings.timer,
    )
    body = BenchmarkResponse(
        n=result.n,
        mode=result.mode,
        avg_ms=result.summary.avg_ms,
        p50_ms=result.summary.p50_ms,
        p95_ms=result.summary.p95_ms,
        all_ms=result.timings,
    )
    return json_response(body.model_dump(mode="json"))
