"""
Items API — Injected Collaborators
===================================

What:  The `Bindings` bundle handed to the app factory, and the FastAPI
       dependency that gives it to route handlers.
Why:   The record store, the response cache, the id generator and the clocks
       are environment-provided. Passing them in explicitly keeps every route
       testable with a SQLite file or a fake, and keeps module import free of
       connection side effects.
How:   create_app(bindings) stores the bundle on `app.state.bindings`; routes
       declare `bindings: Bindings = Depends(get_bindings)`.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional

from starlette.requests import Request

from itemsapi.exceptions import StoreUnavailableError
from itemsapi.services.cache import ResponseCache
from itemsapi.services.store import RecordStore


def new_item_id() -> str:
    return str(uuid.uuid4())


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class Bindings:
    """
    Everything a request handler needs from its environment.

    Attributes:
        store:  Record store, or None when no database is bound (routes that
                need it answer 500).
        cache:  Response cache, or None to disable single-item caching.
        new_id: Unique id generator for inserts.
        now_ms: Wall clock in epoch milliseconds (created_at, bench titles).
        timer:  Monotonic clock in seconds (benchmark latency).
    """

    store: Optional[RecordStore] = None
    cache: Optional[ResponseCache] = None
    new_id: Callable[[], str] = field(default=new_item_id)
    now_ms: Callable[[], int] = field(default=epoch_millis)
    timer: Callable[[], float] = field(default=time.perf_counter)

    def require_store(self) -> RecordStore:
        """Return the bound store or raise StoreUnavailableError."""
        if self.store is None:
            raise StoreUnavailableError()
        return self.store


def get_bindings(request: Request) -> Bindings:
    """FastAPI dependency returning the app's bindings."""
    bindings = getattr(request.app.state, "bindings", None)
    if bindings is None:
        # Lifespan has not run (or failed): behave as if nothing is bound
        return Bindings()
    return bindings
