"""
Items API — FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, exception handlers, route
       mounting and collaborator lifecycle in one place.
How:   create_app(bindings) returns a configured FastAPI instance. Tests pass
       their own Bindings; production leaves it None and the lifespan builds
       them from settings.
Who:   uvicorn (`uvicorn itemsapi.main:app`), `python -m itemsapi`, tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: RequestID → Logging → ErrorShield → CORS│
    │                                                     │
    │  Routes:  /  /diag  /item  /items  /items/{id}       │
    │           /benchmark                                │
    │                                                     │
    │  Exception Handlers:                                │
    │    ValidationError → 400   StoreError → 500         │
    │    StoreUnavailableError → 500   404/405 → 404      │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → (no injected bindings) engine, schema, store, cache
              (Redis when CACHE_URL is set, in-process otherwise)
    Shutdown: close the cache and dispose the engine the lifespan created
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from itemsapi import __version__
from itemsapi.config import settings
from itemsapi.database import create_engine_from_settings, dispose_engine, init_schema
from itemsapi.dependencies import Bindings
from itemsapi.exceptions import StoreError, StoreUnavailableError, ValidationError
from itemsapi.middleware.error_shield import ErrorShieldMiddleware
from itemsapi.middleware.logging import RequestLoggingMiddleware
from itemsapi.middleware.request_id import RequestIDMiddleware, request_id_var
from itemsapi.responses import json_response
from itemsapi.routes import benchmark, health, items
from itemsapi.schemas.item import ErrorResponse, StoreErrorResponse
from itemsapi.services.cache import response_cache_from_settings
from itemsapi.services.store import SqlRecordStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once from the lifespan, before any collaborator is built.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build default bindings on startup unless some were injected.

    A failing schema bootstrap is logged, not fatal: `/` keeps answering and
    `/diag` reports the store error.
    """
    setup_logging()
    logger.info("Items API %s starting up", __version__)

    engine = None
    if getattr(app.state, "bindings", None) is None:
        engine = create_engine_from_settings()
        if settings.create_schema:
            try:
                await init_schema(engine)
            except Exception as e:
                logger.error("Schema bootstrap failed: %s", e)
        app.state.bindings = Bindings(
            store=SqlRecordStore(engine),
            cache=await response_cache_from_settings(settings),
        )
        logger.info("Record store bound to %s", engine.url.render_as_string(hide_password=True))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Items API shutting down...")
    if engine is not None:
        if app.state.bindings.cache is not None:
            await app.state.bindings.cache.close()
        await dispose_engine(engine)
        app.state.bindings = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map typed errors to their response shapes.

        ValidationError        → 400 {"error": message}
        StoreUnavailableError  → 500 {"ok": false, "error": message}
        StoreError             → 500 {"ok": false, "error": message}
        404 / 405              → 404 {"error": "Not found"}

    Untyped exceptions are left to ErrorShieldMiddleware.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return json_response(ErrorResponse(error=exc.message).model_dump(), status_code=400)

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        rid = request_id_var.get("")
        logger.error("[%s] %s %s: %s", rid, request.method, request.url.path, exc.message)
        return json_response(StoreErrorResponse(error=exc.message).model_dump(), status_code=500)

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] Record store error (%s): %s | Context: %s",
            rid,
            exc.route or request.url.path,
            exc.message,
            exc.context,
        )
        return json_response(StoreErrorResponse(error=exc.message).model_dump(), status_code=500)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Wrong method on a known path is reported like an unknown path
        if exc.status_code in (404, 405):
            return json_response(ErrorResponse(error="Not found").model_dump(), status_code=404)
        return json_response(
            ErrorResponse(error=str(exc.detail)).model_dump(),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(bindings: Optional[Bindings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        bindings: Collaborators to serve with. None → built in the lifespan
                  from settings (SQL store on DATABASE_URL + in-memory cache).
    """
    app = FastAPI(
        title="Items API",
        description=(
            "Create/read/delete over a single `items` table, a cached single-item "
            "read, and a store latency benchmark."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.bindings = bindings

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → ErrorShield → CORS → routes
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Cache-Control"],
    )
    app.add_middleware(ErrorShieldMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(items.router)
    app.include_router(benchmark.router)

    return app


# uvicorn expects `itemsapi.main:app` to be importable
app = create_app()
