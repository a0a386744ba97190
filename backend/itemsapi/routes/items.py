"""
Items API — Item Route Handlers
================================

What:  GET /item, GET /items, POST /items, DELETE /items/{id}.
Why:   The CRUD surface over the `items` table.
How:   Handlers coerce input, call ItemService, and shape the response.
       Store failures propagate as StoreError to the global handlers.

Caching Strategy:
    - GET /item?id=X: cache-first. The cache key is the canonical URL
      `<scheme>://<host>/item?id=X` (other query parameters are ignored),
      so the delete handler can rebuild the same key. A miss is answered with
      `Cache-Control: public, max-age=<cache_ttl_seconds>` and copied into the
      cache in the background. A hit is replayed verbatim.
    - DELETE /items/X: schedules removal of that key in the background.
    - GET /items, POST /items: never cached.
"""

import json
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from itemsapi.background import schedule
from itemsapi.config import settings
from itemsapi.dependencies import Bindings, get_bindings
from itemsapi.exceptions import ValidationError
from itemsapi.responses import json_response
from itemsapi.schemas.item import (
    DeleteResponse,
    ErrorResponse,
    InsertResponse,
    ItemListResponse,
    ItemResponse,
    StoreErrorResponse,
)
from itemsapi.services.cache import CachedResponse
from itemsapi.services.item_service import item_service
from itemsapi.validation import parse_limit

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Items"])


def item_cache_key(request: Request, item_id: str) -> str:
    """Canonical cache key for the single-item read of `item_id`."""
    return str(request.url.replace(path="/item", query=urlencode({"id": item_id}), fragment=""))


@router.get(
    "/item",
    summary="Get one item by id (cached)",
    responses={
        200: {"model": ItemResponse},
        400: {"description": "Missing id", "model": ErrorResponse},
        500: {"model": StoreErrorResponse},
    },
)
async def get_item(
    request: Request,
    background_tasks: BackgroundTasks,
    item_id: str | None = Query(default=None, alias="id", description="Item id"),
    bindings: Bindings = Depends(get_bindings),
):
    """
    Return `{"ok": true, "data": item-or-null}`.

    Cache hit: the stored response is returned as-is and the store is not
    queried. Cache miss: one store read, then a background cache put.
    """
    if not item_id:
        raise ValidationError(message="missing id parameter", field="id")

    cache = bindings.cache
    key = item_cache_key(request, item_id)
    if cache is None:
        request.state.cache = "off"
    else:
        cached = await cache.get(key)
        if cached is not None:
            logger.debug("Serving %s from cache", key)
            request.state.cache = "hit"
            return cached.to_response()
        request.state.cache = "miss"

    record = await item_service.get_item(bindings.require_store(), item_id)
    response = json_response(
        ItemResponse(data=record).model_dump(mode="json"),
        headers={"Cache-Control": f"public, max-age={settings.cache_ttl_seconds}"},
    )

    if cache is not None:
        schedule(background_tasks, "cache.put", cache.put, key, CachedResponse.from_response(response))
    return response


@router.get(
    "/items",
    summary="List items, newest first",
    responses={200: {"model": ItemListResponse}, 500: {"model": StoreErrorResponse}},
)
async def list_items(
    limit: str | None = Query(default=None, description="Rows to return (1-500, default 20)"),
    bindings: Bindings = Depends(get_bindings),
):
    """
    Return up to `limit` rows.

    `limit` is taken as a raw string and coerced (see validation.parse_limit)
    so that `limit=abc` or `limit=9999` are served rather than rejected.
    """
    coerced = parse_limit(limit)
    if coerced.defaulted:
        logger.debug("limit defaulted to %d (%s)", coerced.value, coerced.reason)

    rows = await item_service.list_items(bindings.require_store(), coerced.value)
    return json_response(ItemListResponse(rows=rows).model_dump(mode="json"))


@router.post(
    "/items",
    summary="Insert one item",
    responses={
        200: {"model": InsertResponse},
        400: {"description": "Body is not a JSON object", "model": ErrorResponse},
        500: {"model": StoreErrorResponse},
    },
)
async def create_item(request: Request, bindings: Bindings = Depends(get_bindings)):
    """
    Insert `{title?, value?}` and return the store's write acknowledgment.

    The body is decoded by hand rather than through a Pydantic model: only
    an undecodable body (or a non-object) is an error, bad fields are
    coerced to defaults.
    """
    store = bindings.require_store()
    try:
        payload = json.loads(await request.body())
    except (ValueError, UnicodeDecodeError):
        raise ValidationError(message="invalid json body", field="body")
    if not isinstance(payload, dict):
        raise ValidationError(message="invalid json body", field="body")

    _, ack = await item_service.create_item(
        store,
        payload,
        new_id=bindings.new_id,
        now_ms=bindings.now_ms,
    )
    return json_response(InsertResponse(result=ack).model_dump(mode="json"))


@router.delete(
    "/items/{item_path:path}",
    summary="Delete one item by id",
    responses={
        200: {"model": DeleteResponse},
        400: {"description": "Missing id", "model": ErrorResponse},
        500: {"model": StoreErrorResponse},
    },
)
async def delete_item(
    item_path: str,
    request: Request,
    background_tasks: BackgroundTasks,
    bindings: Bindings = Depends(get_bindings),
):
    """
    Delete the item whose id is the first segment after /items/.

    The cached single-item response for that id is removed in the
    background; the invalidation is scheduled before this handler returns.
    """
    store = bindings.require_store()
    segments = [segment for segment in item_path.split("/") if segment]
    if not segments:
        raise ValidationError(message="missing id in path", field="id")
    item_id = segments[0]

    await item_service.delete_item(store, item_id)

    if bindings.cache is not None:
        schedule(background_tasks, "cache.delete", bindings.cache.delete, item_cache_key(request, item_id))
    return json_response(DeleteResponse().model_dump(mode="json"))
