"""
Items API — Application Package Initializer
============================================

What: Marks the `itemsapi` directory as a Python package.
Why:  Enables module imports like `from itemsapi.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    A thin request router over two injected collaborators:

    ┌─────────────────────────────────────┐
    │      Routes (FastAPI routers)       │  ← path/method dispatch, HTTP shapes
    ├─────────────────────────────────────┤
    │   Services (items, benchmark)       │  ← coercion, SQL, statistics
    ├─────────────────────────────────────┤
    │  Bindings: RecordStore + Cache      │  ← injected at app construction
    ├─────────────────────────────────────┤
    │  SQLAlchemy async engine / TTL map  │  ← concrete backends
    └─────────────────────────────────────┘

    Routes never touch the engine directly: they receive a RecordStore and a
    ResponseCache through `Bindings`, so tests swap in SQLite files or fakes.
"""

__version__ = "1.0.0"
