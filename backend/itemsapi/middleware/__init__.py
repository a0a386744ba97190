# Middleware package init
"""
Items API — Middleware Package
===============================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Error Shield] → [CORS] → Route Handler

    1. Request ID first so every later log line carries it
    2. Logging sees the final status, including 500s produced by the shield
    3. Error Shield turns escaped exceptions into 500 JSON
    4. CORS answers browser preflight requests
"""
