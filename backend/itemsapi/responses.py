"""
Items API — Response Helpers
=============================

JSON and text response builders shared by routes, exception handlers and
middleware. Every JSON response carries `Access-Control-Allow-Origin: *`,
including cached copies and error bodies, independent of whether the
request had an Origin header.
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse, PlainTextResponse

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


def json_response(
    payload: Any,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    merged = dict(CORS_HEADERS)
    if headers:
        merged.update(headers)
    return JSONResponse(content=payload, status_code=status_code, headers=merged)


def text_response(content: str, status_code: int = 200) -> PlainTextResponse:
    return PlainTextResponse(content=content, status_code=status_code)
