"""
Items API — Pydantic Response Schemas
======================================

What:  Pydantic models for every response body the router produces.
Why:   Rows coming back from the store are plain dicts; validating them into
       ItemRecord normalizes types (value → float, created_at → int) before
       serialization, and the models document the API in OpenAPI.
How:   Routes build a model, dump it with `model_dump(mode="json")` and pass
       the dict to responses.json_response().

Request bodies are deliberately NOT modeled: POST /items coerces bad fields
instead of rejecting them, which a strict request model would turn into 422s.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer

# Largest magnitude at which every integer is exactly representable as a float
_EXACT_INT_LIMIT = 2**53


# ══════════════════════════════════════════════════════════════════════════
# Records
# ══════════════════════════════════════════════════════════════════════════


class ItemRecord(BaseModel):
    """One row of the `items` table."""

    id: str = Field(description="Opaque unique identifier")
    title: str = Field(description="Text label")
    value: float = Field(description="Finite numeric value")
    created_at: int = Field(description="Creation time in epoch milliseconds")

    model_config = {"from_attributes": True}

    @field_serializer("value")
    def serialize_value(self, value: float):
        """Integral values go out as JSON integers (`3`, not `3.0`)."""
        if value.is_integer() and abs(value) <= _EXACT_INT_LIMIT:
            return int(value)
        return value


# ══════════════════════════════════════════════════════════════════════════
# Success Responses
# ══════════════════════════════════════════════════════════════════════════


class DiagResponse(BaseModel):
    ok: bool = True
    results: List[Dict[str, Any]] = Field(description="Rows of the probe query")


class ItemResponse(BaseModel):
    """GET /item — `data` is null when the id does not exist."""

    ok: bool = True
    data: Optional[ItemRecord] = None


class ItemListResponse(BaseModel):
    """GET /items — newest first."""

    ok: bool = True
    rows: List[ItemRecord]


class InsertResponse(BaseModel):
    """POST /items — `result` is the store's write acknowledgment, verbatim."""

    ok: bool = True
    result: Dict[str, Any]


class DeleteResponse(BaseModel):
    ok: bool = True


class BenchmarkResponse(BaseModel):
    """
    GET /benchmark.

    `all_ms` holds every iteration in order, failures as -1. The summary
    fields cover successful iterations only and are null when none succeeded.
    """

    ok: bool = True
    n: int
    mode: str
    avg_ms: Optional[float] = None
    p50_ms: Optional[float] = None
    p95_ms: Optional[float] = None
    all_ms: List[float]


# ══════════════════════════════════════════════════════════════════════════
# Error Responses
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """400 and 404 bodies."""

    error: str = Field(description="Human-readable error description")


class StoreErrorResponse(BaseModel):
    """500 body when the record store is missing or failed."""

    ok: bool = False
    error: str


class ServerErrorResponse(BaseModel):
    """500 body from the safety net: error string plus a truncated trace."""

    ok: bool = False
    error: str
    stack: Optional[List[str]] = None
