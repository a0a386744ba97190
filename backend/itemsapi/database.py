"""
Items API — Database Engine Management
=======================================

What:  Async SQLAlchemy engine construction, declarative Base, schema bootstrap.
Why:   Centralizes all connection logic in one place; the record store receives
       a ready engine and never reads settings itself.
How:   `create_engine_from_settings()` builds an async engine from the
       configured URL. `init_schema()` runs `create_all` for the declared
       models, which is idempotent.
Who:   Called by the application lifespan (main.py) and by tests.
When:  Once at startup; the engine is disposed at shutdown.

Connection Pooling:
    Server databases (PostgreSQL via asyncpg) get an explicit pool:
        pool_size / max_overflow / pool_pre_ping from settings,
        pool_recycle=3600 against long-lived stale connections.
    SQLite URLs keep the dialect's default pool (pool sizing does not apply
    to a file or in-memory database).
"""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from itemsapi.config import Settings, settings as default_settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Models register their tables on `Base.metadata`, which init_schema()
    uses to create missing tables.
    """
    pass


def create_engine_from_settings(config: Optional[Settings] = None) -> AsyncEngine:
    """
    Build the async engine for the record store.

    Args:
        config: Settings override (tests); defaults to the module singleton.
    """
    config = config or default_settings
    options: Dict[str, Any] = {"echo": config.log_level == "DEBUG"}
    if not config.is_sqlite:
        options.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(config.database_url, **options)


async def init_schema(engine: AsyncEngine) -> None:
    """
    Create the `items` table and its index if they do not exist.

    No migrations: the schema is a single flat table, created idempotently.
    """
    # Import registers the model on Base.metadata
    from itemsapi.models import item  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close all pooled connections (called during shutdown)."""
    await engine.dispose()
