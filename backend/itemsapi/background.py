"""
Items API — Fire-and-Forget Background Work
============================================

What:  Schedules cache population and invalidation after the response.
Why:   A cache write must never delay or fail the request that produced it.
How:   Wraps the coroutine in a guard that logs any exception with its
       label, then hands it to Starlette's BackgroundTasks, which runs it
       once the response has been sent.

Ordering:
    Tasks are scheduled before the handler returns, so a delete's
    invalidation is issued before its response; completion is not awaited by
    the client. A read racing a delete may still observe the old entry.
"""

import logging
from typing import Any, Awaitable, Callable

from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)


async def run_guarded(label: str, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
    """Await `func(*args)`; log failures instead of raising."""
    try:
        await func(*args)
    except Exception:
        logger.exception("Background task %s failed", label)


def schedule(
    background_tasks: BackgroundTasks,
    label: str,
    func: Callable[..., Awaitable[Any]],
    *args: Any,
) -> None:
    """Queue `func(*args)` to run after the response is sent."""
    background_tasks.add_task(run_guarded, label, func, *args)
