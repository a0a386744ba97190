"""
Items API — Record Store Interface and SQL Implementation
==========================================================

What:  The prepared-statement contract the router uses to reach the database,
       plus its SQLAlchemy implementation.
Why:   Handlers only ever need two calls: `run` for writes and `all` for
       reads. Keeping that contract abstract lets tests bind a SQLite file,
       a counting wrapper or a failing double without touching the routes.
How:   SqlRecordStore wraps an AsyncEngine and executes `text()` statements
       with named bind parameters (":id", ":limit", ...). Values are never
       interpolated into SQL.

Contract:
    all(sql, params) -> list of row dicts, in result order
    run(sql, params) -> write acknowledgment:
        {"success": True, "meta": {"changes": <rowcount>, "duration": <ms>}}

    Driver errors propagate unchanged; services translate them into
    StoreError with the route that issued the call.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RecordStore(ABC):
    """Prepared-statement access to the relational record store."""

    @abstractmethod
    async def all(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Row]:
        """
        Execute a read statement and return every row as a dict.

        Args:
            sql:    Statement text with named parameters (":name").
            params: Values bound to those parameters.
        """
        ...

    @abstractmethod
    async def run(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute a write statement and return the store's acknowledgment.

        The acknowledgment is returned to API callers verbatim, so it must be
        JSON-serializable.
        """
        ...


class SqlRecordStore(RecordStore):
    """
    RecordStore backed by an async SQLAlchemy engine.

    Reads use a plain connection (autobegin, rolled back on close); writes
    run inside `engine.begin()` so each statement commits on its own.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def all(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Row]:
        async with self.engine.connect() as conn:
            result = await conn.execute(text(sql), dict(params or {}))
            return [dict(row) for row in result.mappings().all()]

    async def run(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        start = time.perf_counter()
        async with self.engine.begin() as conn:
            result = await conn.execute(text(sql), dict(params or {}))
            changes = result.rowcount
        duration_ms = (time.perf_counter() - start) * 1000
        logger.debug("run: %d row(s) changed in %.2fms", changes, duration_ms)
        return {
            "success": True,
            "meta": {
                "changes": changes,
                "duration": round(duration_ms, 3),
            },
        }
