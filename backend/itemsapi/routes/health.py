"""
Items API — Liveness and Diagnostics Routes
============================================

What:  GET / (liveness) and GET /diag (store connectivity).
Why:   `/` answers without touching any collaborator, so it stays green while
       the database is down; `/diag` proves a query round-trips.
Who:   Load balancer probes and operators.
"""

import logging

from fastapi import APIRouter, Depends

from itemsapi.dependencies import Bindings, get_bindings
from itemsapi.responses import json_response, text_response
from itemsapi.schemas.item import DiagResponse, StoreErrorResponse
from itemsapi.services.item_service import item_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

LIVENESS_TEXT = "D1 API Worker OK"


@router.get("/", summary="Liveness check", response_model=None)
async def liveness():
    return text_response(LIVENESS_TEXT)


@router.get(
    "/diag",
    summary="Record store connectivity check",
    responses={
        200: {"model": DiagResponse},
        500: {"description": "Store missing or unreachable", "model": StoreErrorResponse},
    },
)
async def diag(bindings: Bindings = Depends(get_bindings)):
    """
    Run `SELECT 1 AS ok` against the store.

    Failures surface through the StoreError / StoreUnavailableError handlers
    as 500 `{"ok": false, "error": ...}`.
    """
    results = await item_service.diag(bindings.require_store())
    return json_response(DiagResponse(results=results).model_dump(mode="json"))
