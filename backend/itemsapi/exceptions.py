"""
Items API — Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for the error classes the router knows.
Why:   Services raise typed errors; global handlers in main.py map each type to
       its HTTP status and response shape, so routes stay free of try/except.
How:   Each exception carries a message and an optional context dict.
       The context is logged server-side; only the message reaches the client.

Exception Hierarchy:
    ItemsApiError (base)
    ├── ValidationError        → 400 {"error": message}
    ├── StoreUnavailableError  → 500 {"ok": false, "error": message}
    └── StoreError             → 500 {"ok": false, "error": message}

    Anything outside this hierarchy is caught by ErrorShieldMiddleware and
    returned as 500 {"ok": false, "error", "stack"}.
"""

from typing import Any, Dict, Optional


class ItemsApiError(Exception):
    """
    Base exception for all Items API errors.

    Attributes:
        message:  Client-facing error description
        context:  Additional debug info (logged, not returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ItemsApiError):
    """
    Raised when client input cannot be used at all.

    Numeric query parameters never raise this: they fall back to defaults
    (see itemsapi.validation). Only a missing id or an unreadable JSON body
    is rejected.

    HTTP: 400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class StoreUnavailableError(ItemsApiError):
    """
    Raised when no record store is bound to the application.

    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "record store binding not configured",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreError(ItemsApiError):
    """
    Raised when a record store call fails.

    The message is the string form of the underlying error; the route that
    issued the call is kept in `context["route"]` for the log line.

    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "record store operation failed",
        route: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if route:
            ctx["route"] = route
        super().__init__(message=message, context=ctx)
        self.route = route

    @classmethod
    def wrap(cls, exc: Exception, route: str) -> "StoreError":
        """Build a StoreError from a driver exception raised on `route`."""
        return cls(
            message=str(exc),
            route=route,
            context={"error_type": type(exc).__name__},
        )
