"""
Items API — Item Service
=========================

What:  The store calls behind /diag, /item, /items and /items/{id}.
Why:   Keeps SQL and payload coercion out of the route handlers; routes deal
       with HTTP (status, headers, caching) only.
How:   Each method receives the RecordStore for the current request, issues
       one prepared statement, and returns typed results. Any store failure
       is wrapped in StoreError tagged with the route that issued it.

Design Decision:
    ItemService is stateless: the store is passed per call, the id generator
    and clock are passed to create_item(). A single module-level instance is
    shared by all requests.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from itemsapi.exceptions import StoreError
from itemsapi.schemas.item import ItemRecord
from itemsapi.services.store import RecordStore, Row
from itemsapi.validation import coerce_title, coerce_value

logger = logging.getLogger(__name__)

DIAG_SQL = "SELECT 1 AS ok"
SELECT_ONE_SQL = "SELECT id, title, value, created_at FROM items WHERE id = :id LIMIT 1"
LIST_SQL = "SELECT id, title, value, created_at FROM items ORDER BY created_at DESC LIMIT :limit"
INSERT_SQL = (
    "INSERT INTO items (id, title, value, created_at) "
    "VALUES (:id, :title, :value, :created_at)"
)
DELETE_SQL = "DELETE FROM items WHERE id = :id"


class ItemService:
    """
    Store operations for the `items` table.

    Responsibilities:
        - diag(): connectivity probe
        - get_item(): single row by id (None when absent)
        - list_items(): newest-first page
        - create_item(): coerce payload, insert, return the write ack
        - delete_item(): delete by id, return the write ack
    """

    async def diag(self, store: RecordStore) -> List[Row]:
        try:
            return await store.all(DIAG_SQL)
        except Exception as e:
            raise StoreError.wrap(e, route="/diag")

    async def get_item(self, store: RecordStore, item_id: str) -> Optional[ItemRecord]:
        """
        Fetch one item by id.

        Returns None for an unknown id; the route reports that as
        `data: null`, not as a 404.
        """
        try:
            rows = await store.all(SELECT_ONE_SQL, {"id": item_id})
        except Exception as e:
            raise StoreError.wrap(e, route="/item")
        if not rows:
            return None
        return ItemRecord.model_validate(rows[0])

    async def list_items(self, store: RecordStore, limit: int) -> List[ItemRecord]:
        """
        Fetch up to `limit` items, newest first.

        `limit` must already be coerced (validation.parse_limit); it is bound
        as a parameter, never formatted into the SQL.
        """
        try:
            rows = await store.all(LIST_SQL, {"limit": limit})
        except Exception as e:
            raise StoreError.wrap(e, route="/items")
        return [ItemRecord.model_validate(row) for row in rows]

    async def create_item(
        self,
        store: RecordStore,
        payload: Mapping[str, Any],
        new_id: Callable[[], str],
        now_ms: Callable[[], int],
    ) -> Tuple[ItemRecord, Dict[str, Any]]:
        """
        Insert one item built from a decoded JSON object.

        Bad `title`/`value` fields are replaced by their defaults, never
        rejected.

        Returns:
            (the record as written, the store's write acknowledgment)
        """
        title = coerce_title(payload.get("title"))
        value = coerce_value(payload.get("value"))
        for name, outcome in (("title", title), ("value", value)):
            if outcome.defaulted:
                logger.debug("Insert: %s defaulted (%s)", name, outcome.reason)

        record = ItemRecord(
            id=new_id(),
            title=title.value,
            value=value.value,
            created_at=now_ms(),
        )
        try:
            ack = await store.run(INSERT_SQL, record.model_dump())
        except Exception as e:
            raise StoreError.wrap(e, route="POST /items")
        logger.info("Inserted item %s", record.id)
        return record, ack

    async def delete_item(self, store: RecordStore, item_id: str) -> Dict[str, Any]:
        try:
            ack = await store.run(DELETE_SQL, {"id": item_id})
        except Exception as e:
            raise StoreError.wrap(e, route="DELETE /items")
        logger.info("Deleted item %s", item_id)
        return ack


# ── Singleton Instance ────────────────────────────────────────────────────
item_service = ItemService()
