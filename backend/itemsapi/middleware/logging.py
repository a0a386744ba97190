"""
Items API — Access Log Middleware
==================================

What:  One access line per request, tagged with the single-item cache outcome.
Why:   The cache hit ratio of GET /item and the store's error rate are read
       straight from the access log.
How:   Times the downstream call; handlers leave `request.state.cache`
       ("hit", "miss" or "off") and the line carries it when present.

Line format:
    GET /item 200 1.4ms cache=hit [3f2a9c1e]
    POST /items 500 12.0ms [3f2a9c1e]

Level by status class: 5xx ERROR, 4xx WARNING, else INFO. The liveness
route `/` is not logged: probes hit it every few seconds.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from itemsapi.middleware.request_id import request_id_var

logger = logging.getLogger("itemsapi.access")

QUIET_PATHS = {"/"}


def status_level(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes the access line after the response is produced."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        cache = getattr(request.state, "cache", None)
        logger.log(
            status_level(response.status_code),
            "%s %s %d %.1fms%s [%s]",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            f" cache={cache}" if cache else "",
            request_id_var.get(""),
        )
        return response
