"""
Items API — Top-Level Safety Net
=================================

What:  Converts any exception that escaped the route handlers and the typed
       exception handlers into a 500 JSON response.
Why:   A bug must never surface as a bare connection reset or an HTML page;
       the client gets the error string and a short trace, nothing more.
How:   Wraps call_next in try/except. Typed ItemsApiError subclasses never
       reach this point (main.py handles them inside the router).

Response:
    500 {"ok": false, "error": str(exc), "stack": [first N trace lines]}
    N = settings.error_stack_lines (default 5). The full trace is logged.
"""

import logging
import traceback
from typing import List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from itemsapi.config import settings
from itemsapi.middleware.request_id import request_id_var
from itemsapi.responses import json_response
from itemsapi.schemas.item import ServerErrorResponse

logger = logging.getLogger(__name__)


def truncated_trace(exc: BaseException, max_lines: int) -> List[str]:
    """First `max_lines` lines of the formatted traceback of `exc`."""
    formatted = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return formatted.splitlines()[:max_lines]


class ErrorShieldMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            rid = request_id_var.get("")
            logger.error(
                "[%s] Unhandled error on %s %s: %s",
                rid,
                request.method,
                request.url.path,
                exc,
                exc_info=True,
            )
            body = ServerErrorResponse(
                error=str(exc),
                stack=truncated_trace(exc, settings.error_stack_lines) or None,
            )
            return json_response(body.model_dump(mode="json"), status_code=500)
